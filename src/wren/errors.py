"""Wren exception hierarchy.

Shared across RouteTable, PipelineBuilder, ParameterBinder, DispatchGate
and App so every module raises and catches the same types.

Registration-time problems are ``ConfigurationError`` subclasses and should
stop the process from serving. Per-request problems are ``HTTPError``
subclasses carrying the status the outermost caller should answer with.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app configuration or route registration is invalid.

    Typically raised at startup, before the first request is handled.
    """


class MalformedRoute(ConfigurationError):
    """A route template or verb cannot be compiled."""


class UnknownBinding(WrenError, KeyError):
    """The resolution registry has no entry for the requested key."""

    def __init__(self, key: object) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"No binding registered for {_describe(self.key)}"


class UnsupportedResult(WrenError, TypeError):
    """A handler returned a value that cannot be turned into a response."""


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, binder, or handlers. ``App.handle``
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class RouteNotFound(HTTPError):  # noqa: N818
    """404: no registered route matches the method and path."""

    def __init__(self, method: str, path: str) -> None:
        super().__init__(status=404, detail=f"Route does not exist: {method} {path}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "path", path)

    # Declared for type checkers; set in __init__ through object.__setattr__
    method: str
    path: str


class UnresolvableParameter(HTTPError):  # noqa: N818
    """500: a handler argument cannot be bound from any source."""

    def __init__(self, parameter: str, detail: str = "") -> None:
        super().__init__(
            status=500,
            detail=detail or f"Unable to resolve value for parameter {parameter!r}",
        )
        object.__setattr__(self, "parameter", parameter)

    parameter: str


class MiddlewareResolutionError(HTTPError):
    """500: a named or factory middleware cannot be produced."""

    def __init__(self, middleware: object, detail: str = "") -> None:
        super().__init__(
            status=500,
            detail=detail or f"Unable to resolve middleware {_describe(middleware)}",
        )
        object.__setattr__(self, "middleware", middleware)

    middleware: object


class DispatchStalled(HTTPError):  # noqa: N818
    """500: a suspend-capable handler never reached completion."""

    def __init__(self, detail: str = "Async handler did not run to completion") -> None:
        super().__init__(status=500, detail=detail)


def _describe(obj: object) -> str:
    if isinstance(obj, str):
        return repr(obj)
    return getattr(obj, "__qualname__", None) or type(obj).__qualname__
