"""Tests for wren.config: AppConfig validation."""

import dataclasses

import pytest

from wren.config import AppConfig
from wren.errors import ConfigurationError


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.debug is False
        assert config.driver == "auto"
        assert config.anyio_backend == "asyncio"
        assert config.dispatch_timeout is None
        assert config.inline_max_steps == 10_000
        assert config.default_middleware == ()
        assert config.not_found_json is True

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.debug = True  # type: ignore[misc]

    def test_unknown_driver(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown driver 'gevent'"):
            AppConfig(driver="gevent")

    def test_unknown_backend(self) -> None:
        with pytest.raises(ConfigurationError, match="anyio backend"):
            AppConfig(anyio_backend="curio")

    @pytest.mark.parametrize("timeout", [0, -1.0])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        with pytest.raises(ConfigurationError):
            AppConfig(dispatch_timeout=timeout)

    def test_max_steps_at_least_one(self) -> None:
        with pytest.raises(ConfigurationError):
            AppConfig(inline_max_steps=0)

    def test_replace_revalidates(self) -> None:
        with pytest.raises(ConfigurationError):
            dataclasses.replace(AppConfig(), driver="nope")
