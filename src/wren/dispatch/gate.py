"""DispatchGate: the single point where handlers are invoked.

Plain handlers are called directly on the request thread. Suspend-capable
handlers are handed to a driver, which runs them to completion before the
gate returns, so the pipeline around the handler stays synchronous.

The driver is chosen lazily: the first async dispatch resolves it (from
the instance or name given at construction) and caches it for the life
of the gate.
"""

from __future__ import annotations

import inspect
import logging
import threading
from typing import Any

from wren._internal.types import Thunk
from wren.config import AppConfig
from wren.dispatch.drivers import Driver, create_driver
from wren.errors import ConfigurationError

logger = logging.getLogger("wren.dispatch")


class DispatchGate:
    """Run handler thunks, synchronously or through a driver."""

    __slots__ = ("_config", "_driver", "_lock", "_requested")

    def __init__(self, driver: Driver | str = "auto", *, config: AppConfig | None = None) -> None:
        self._config = config or AppConfig()
        self._requested: Driver | str = driver
        self._driver: Driver | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: AppConfig) -> DispatchGate:
        return cls(config.driver, config=config)

    @property
    def resolved(self) -> bool:
        return self._driver is not None

    @property
    def driver(self) -> Driver:
        """The active driver, resolved on first access."""
        driver = self._driver
        if driver is not None:
            return driver
        with self._lock:
            if self._driver is None:
                requested = self._requested
                if isinstance(requested, str):
                    self._driver = create_driver(requested, self._config)
                else:
                    self._driver = requested
                logger.debug("Dispatch driver resolved: %s", self._driver.name)
            return self._driver

    def use_driver(self, driver: Driver | str) -> None:
        """Override the driver. Only allowed before the first async dispatch."""
        with self._lock:
            if self._driver is not None:
                msg = (
                    f"Dispatch driver already resolved to {self._driver.name!r}; "
                    f"call use_driver() before handling requests."
                )
                raise ConfigurationError(msg)
            self._requested = driver

    def dispatch_sync(self, thunk: Thunk) -> Any:
        return thunk()

    def dispatch_async(self, thunk: Thunk) -> Any:
        """Run *thunk* through the driver and return its final value."""
        return self.driver.run(thunk)

    def dispatch(self, thunk: Thunk, is_async: bool) -> Any:
        if is_async:
            return self.dispatch_async(thunk)
        result = self.dispatch_sync(thunk)
        if inspect.isawaitable(result):
            # Registered as plain but handed back an awaitable
            logger.debug("Sync handler returned an awaitable; running it through the driver")
            return self.dispatch_async(lambda: result)
        return result

    def close(self) -> None:
        with self._lock:
            driver, self._driver = self._driver, None
        if driver is not None:
            driver.close()
