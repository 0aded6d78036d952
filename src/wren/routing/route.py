"""RouteDefinition and MatchResult frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from wren._internal.invoke import is_suspend_capable
from wren.binding import HandlerDescriptor, describe
from wren.errors import MalformedRoute
from wren.routing.pattern import CompiledPattern, compile_path

HTTP_METHODS: frozenset[str] = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """A frozen route definition.

    The template is compiled and the handler's signature is described
    exactly once, here. Nothing about a route changes after construction.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    middleware: tuple[Any, ...] = ()
    name: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()

    # Derived at construction
    pattern: CompiledPattern = field(init=False, repr=False, compare=False)
    descriptor: HandlerDescriptor = field(init=False, repr=False, compare=False)
    is_async: bool = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        method = self.method.upper()
        if method not in HTTP_METHODS:
            msg = f"Unsupported HTTP method {self.method!r} for route {self.path!r}"
            raise MalformedRoute(msg)
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "middleware", tuple(self.middleware))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "pattern", compile_path(self.path))
        object.__setattr__(self, "descriptor", describe(self.handler))
        object.__setattr__(self, "is_async", is_suspend_capable(self.handler))

    @property
    def param_names(self) -> tuple[str, ...]:
        return self.pattern.param_names

    def match(self, method: str, path: str) -> dict[str, str] | None:
        """Parameters if *method* and *path* match this route, else ``None``."""
        if method.upper() != self.method:
            return None
        return self.pattern.match(path)


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Result of a successful route match."""

    route: RouteDefinition
    params: dict[str, str]
    is_async: bool = False
