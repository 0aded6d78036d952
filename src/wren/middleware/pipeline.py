"""Pipeline construction: middleware wrapped around a terminal handler.

``PipelineBuilder.build([A, B], terminal)`` returns a handler equivalent
to ``A(B(terminal))``: A runs first, its ``next`` reaches B, and B's
``next`` reaches the terminal handler. Each call to ``build`` produces a
fresh chain of closures, so no state is shared between requests.

Middleware lists may mix several kinds of unit:

- an object with ``process(request, next)``,
- a plain callable ``mw(request, next)``,
- a class, instantiated with no arguments,
- a ``MiddlewareFactory`` (see ``factory``), called with the container,
- a string identifier looked up in the middleware map; the mapped value
  may be any of the above, or a dotted import path.
"""

import importlib
import inspect
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from wren.container import Container
from wren.errors import MiddlewareResolutionError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import MiddlewareCallable, Next

logger = logging.getLogger("wren.middleware")


@dataclass(frozen=True, slots=True)
class MiddlewareFactory:
    """A callable that builds a middleware from the container."""

    build: Callable[[Container], Any]


def factory(func: Callable[[Container], Any]) -> MiddlewareFactory:
    """Mark *func* as a middleware factory rather than a middleware.

    ::

        @factory
        def audit(container: Container) -> AuditMiddleware:
            return AuditMiddleware(container.get(AuditLog))

        app.use(audit)
    """
    return MiddlewareFactory(func)


class MiddlewareResolver:
    """Turn middleware units into ``(request, next)`` callables.

    Resolution happens on every request-handling pass. Classes and
    factories therefore produce a new instance each time unless they
    hand back something cached in the container.
    """

    __slots__ = ("container", "middleware_map")

    def __init__(
        self,
        middleware_map: Mapping[str, Any] | None = None,
        container: Container | None = None,
    ) -> None:
        self.middleware_map: Mapping[str, Any] = middleware_map if middleware_map is not None else {}
        self.container = container if container is not None else Container()

    def resolve(self, unit: Any) -> MiddlewareCallable:
        """Resolve one unit. Raises ``MiddlewareResolutionError``."""
        original = unit

        if isinstance(unit, str):
            if unit in self.middleware_map:
                unit = self.middleware_map[unit]
            if isinstance(unit, str):
                unit = _import_dotted(unit, original)

        if isinstance(unit, MiddlewareFactory):
            try:
                unit = unit.build(self.container)
            except MiddlewareResolutionError:
                raise
            except Exception as exc:
                msg = f"Middleware factory for {original!r} failed: {exc}"
                raise MiddlewareResolutionError(original, msg) from exc
        elif inspect.isclass(unit):
            try:
                unit = unit()
            except TypeError as exc:
                msg = f"Middleware class {unit.__qualname__} cannot be instantiated without arguments"
                raise MiddlewareResolutionError(original, msg) from exc

        return _as_callable(unit, original)

    def resolve_all(self, units: Sequence[Any]) -> list[MiddlewareCallable]:
        return [self.resolve(unit) for unit in units]


class PipelineBuilder:
    """Compose middleware and a terminal handler into one callable.

    Usage::

        builder = PipelineBuilder(resolver)
        handler = builder.build(["auth", Timing()], terminal)
        response = handler(request)
    """

    __slots__ = ("resolver",)

    def __init__(self, resolver: MiddlewareResolver | None = None) -> None:
        self.resolver = resolver or MiddlewareResolver()

    def build(self, middleware: Sequence[Any], terminal: Next) -> Next:
        """Resolve *middleware* and wrap it around *terminal*.

        The builder does not stop a middleware from calling ``next`` more
        than once; doing so runs the rest of the chain again.
        """
        return compose(self.resolver.resolve_all(middleware), terminal)


def compose(middleware: Sequence[MiddlewareCallable], terminal: Next) -> Next:
    """Wrap already-resolved *middleware* around *terminal*.

    Walks the list in reverse so the first entry ends up outermost.
    """
    handler: Next = terminal
    for mw in reversed(middleware):
        outer = handler
        mw_ref = mw

        def make_next(req: Request, _mw: MiddlewareCallable = mw_ref, _next: Next = outer) -> Response:
            return _mw(req, _next)

        handler = make_next
    return handler


def _as_callable(unit: Any, original: Any) -> MiddlewareCallable:
    process = getattr(unit, "process", None)
    if process is not None and callable(process):
        return process
    if callable(unit):
        return unit
    msg = f"{type(unit).__qualname__} is not a middleware: expected process(request, next) or a callable"
    raise MiddlewareResolutionError(original, msg)


def _import_dotted(path: str, original: Any) -> Any:
    """Import ``pkg.module:attr`` or ``pkg.module.attr``."""
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        msg = f"Middleware {path!r} is not registered"
        raise MiddlewareResolutionError(original, msg)
    try:
        module = importlib.import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        logger.debug("Failed to import middleware %s: %s", path, exc)
        msg = f"Middleware {path!r} does not exist"
        raise MiddlewareResolutionError(original, msg) from exc
