"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass

from wren.errors import ConfigurationError

DRIVER_NAMES: frozenset[str] = frozenset({"auto", "inline", "asyncio", "anyio"})
ANYIO_BACKENDS: frozenset[str] = frozenset({"asyncio", "trio"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, driver="inline")
    """

    debug: bool = False

    # Async dispatch
    driver: str = "auto"  # auto | inline | asyncio | anyio
    anyio_backend: str = "asyncio"  # Only used when driver="anyio"
    dispatch_timeout: float | None = None  # Seconds; loop drivers only
    inline_max_steps: int = 10_000  # Resumptions before the inline driver gives up

    # Middleware identifiers prepended to every pipeline
    default_middleware: tuple[str, ...] = ()

    # Errors
    not_found_json: bool = True

    def __post_init__(self) -> None:
        if self.driver not in DRIVER_NAMES:
            msg = f"Unknown driver {self.driver!r}. Expected one of: {', '.join(sorted(DRIVER_NAMES))}"
            raise ConfigurationError(msg)
        if self.anyio_backend not in ANYIO_BACKENDS:
            msg = f"Unknown anyio backend {self.anyio_backend!r}"
            raise ConfigurationError(msg)
        if self.dispatch_timeout is not None and self.dispatch_timeout <= 0:
            msg = "dispatch_timeout must be positive when set"
            raise ConfigurationError(msg)
        if self.inline_max_steps < 1:
            msg = "inline_max_steps must be at least 1"
            raise ConfigurationError(msg)
