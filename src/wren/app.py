"""Wren application class.

Mutable during setup (route registration, middleware, bindings).
Frozen when ``handle()`` is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from wren._internal.types import ErrorHandler, Handler
from wren.binding import ParameterBinder
from wren.config import AppConfig
from wren.container import Container
from wren.dispatch.drivers import Driver
from wren.dispatch.gate import DispatchGate
from wren.errors import HTTPError, RouteNotFound, WrenError
from wren.http.factory import ResponseFactory
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.pipeline import MiddlewareResolver, PipelineBuilder
from wren.negotiation import negotiate
from wren.routing.route import MatchResult, RouteDefinition
from wren.routing.router import RouteTable

logger = logging.getLogger("wren.server")

# Looked up only after the status code
_BASE_ERRORS: frozenset[type] = frozenset({HTTPError, WrenError, Exception, BaseException, object})


class App:
    """The wren application.

    Mutable during setup (route registration, middleware, bindings).
    Frozen when ``handle()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread snapshots the middleware, even when several threads send
        the first request at once. After that, ``handle()`` only reads
        shared state and may be called from many threads.
    """

    __slots__ = (
        "_binder",
        "_container",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_gate",
        "_middleware",
        "_middleware_list",
        "_middleware_map",
        "_pipeline",
        "_responses",
        "_router",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        container: Container | None = None,
        driver: Driver | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._container: Container = container if container is not None else Container()
        self._router = RouteTable()
        self._middleware_list: list[Any] = []
        self._middleware_map: dict[str, Any] = {}
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        if not self._container.has(ResponseFactory):
            self._container.set(ResponseFactory, ResponseFactory())
        self._responses: ResponseFactory = self._container.get(ResponseFactory)

        self._binder = ParameterBinder(self._container)
        self._gate = DispatchGate(driver if driver is not None else self.config.driver, config=self.config)
        self._pipeline = PipelineBuilder(MiddlewareResolver(self._middleware_map, self._container))

        # Compiled state, set during _freeze()
        self._middleware: tuple[Any, ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: Sequence[str] | None = None,
        name: str | None = None,
        middleware: Iterable[Any] = (),
        summary: str | None = None,
        description: str | None = None,
        tags: Iterable[str] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path template. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name for ``url_for``. Attached to the
                first method when several are given.
            middleware: Route middleware, run after the global middleware.
            summary: Short description, kept as route metadata.
            description: Long description, kept as route metadata.
            tags: Grouping labels, kept as route metadata.
        """
        middleware = tuple(middleware)
        tags = tuple(tags)

        def decorator(func: Handler) -> Handler:
            for index, method in enumerate(methods or ["GET"]):
                self.add_route(
                    method,
                    path,
                    func,
                    middleware=middleware,
                    name=name if index == 0 else None,
                    summary=summary,
                    description=description,
                    tags=tags,
                )
            return func

        return decorator

    def get(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["GET"], **options)

    def post(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["POST"], **options)

    def put(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["PUT"], **options)

    def patch(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["PATCH"], **options)

    def delete(self, path: str, **options: Any) -> Callable[[Handler], Handler]:
        return self.route(path, methods=["DELETE"], **options)

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        *,
        middleware: Iterable[Any] = (),
        name: str | None = None,
        summary: str | None = None,
        description: str | None = None,
        tags: Iterable[str] = (),
    ) -> RouteDefinition:
        """Register *handler* for *method* and *path*.

        The template is compiled and the handler signature inspected here,
        so a malformed route fails at import time rather than on a request.
        """
        self._check_not_frozen()
        route = RouteDefinition(
            method=method,
            path=path,
            handler=handler,
            middleware=tuple(middleware),
            name=name,
            summary=summary,
            description=description,
            tags=tuple(tags),
        )
        self._router.add(route)
        return route

    # -- Middleware --

    def use(self, *middleware: Any) -> None:
        """Append global middleware, run for every matched route in order."""
        self._check_not_frozen()
        self._middleware_list.extend(middleware)

    def register_middleware(self, name: str, middleware: Any) -> None:
        """Make *middleware* available under the string identifier *name*.

        The value may be an instance, a class, a ``factory``, or a dotted
        import path.
        """
        self._check_not_frozen()
        self._middleware_map[name] = middleware

    # -- Service injection --

    def register(self, key: Any, concrete: Any, *, singleton: bool = True) -> None:
        """Bind *key* in the container. See ``Container.set``."""
        self._check_not_frozen()
        self._container.set(key, concrete, singleton=singleton)

    def provide(self, annotation: type, factory: Callable[[], Any]) -> None:
        """Register a provider factory for dependency injection.

        When a handler parameter's type annotation matches *annotation*,
        wren calls *factory* (with no arguments) on every request and
        injects the result::

            app.provide(Clock, SystemClock)

            @app.get("/now")
            def now(clock: Clock) -> dict: ...
        """
        self._check_not_frozen()
        self._container.set(annotation, lambda _container: factory(), singleton=False)

    def use_driver(self, driver: Driver | str) -> None:
        """Override the dispatch driver before the first async request."""
        self._gate.use_driver(driver)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        Handlers may take zero arguments, ``(request)``, or
        ``(request, exc)``, and return anything a route handler may.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Accessors --

    @property
    def router(self) -> RouteTable:
        return self._router

    @property
    def container(self) -> Container:
        return self._container

    @property
    def gate(self) -> DispatchGate:
        return self._gate

    def url_for(self, name: str, **params: Any) -> str:
        return self._router.url_for(name, **params)

    # -- Request handling --

    def handle(self, request: Request) -> Response:
        """Run *request* through routing, middleware and the handler.

        ``HTTPError`` subclasses become responses; other exceptions
        propagate unless an error handler was registered for them.
        """
        self._ensure_frozen()
        try:
            match = self._router.match_request(request)
            request = request.with_attributes(match.params)
            middleware = (*self._middleware, *match.route.middleware)

            def terminal(req: Request, _match: MatchResult = match) -> Response:
                return self._invoke(_match, req)

            response = self._pipeline.build(middleware, terminal)(request)
        except HTTPError as exc:
            response = self._handle_http_error(exc, request)
        except Exception as exc:
            handler = self._find_error_handler(exc, 500)
            if handler is None:
                raise
            response = self._handle_internal_error(exc, request, handler)

        logger.debug("%s %s -> %d", request.method, request.path, response.status)
        return response

    def _invoke(self, match: MatchResult, request: Request) -> Response:
        """Bind arguments, dispatch the handler and normalize its result."""
        route = match.route
        bound = self._binder.bind(route.descriptor, request, match.params)
        result = self._gate.dispatch(lambda: bound.call(route.handler), match.is_async)
        return negotiate(result, self._responses)

    def _handle_http_error(self, exc: HTTPError, request: Request) -> Response:
        logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

        handler = self._find_error_handler(exc, exc.status)
        if handler is not None:
            response = self._call_error_handler(handler, request, exc)
            # Keep the exception's status unless the handler chose one
            if response.status == 200:
                response = response.with_status(exc.status)
            return response

        if isinstance(exc, RouteNotFound):
            response = self._not_found(exc)
        else:
            detail = exc.detail or f"Error {exc.status}"
            if exc.status >= 500 and not self.config.debug:
                detail = "Internal Server Error"
            response = self._responses.json({"error": detail, "status": exc.status}, status=exc.status)

        for name, value in exc.headers:
            response = response.with_header(name, value)
        return response

    def _handle_internal_error(self, exc: Exception, request: Request, handler: ErrorHandler) -> Response:
        logger.exception("500 %s %s", request.method, request.path)
        response = self._call_error_handler(handler, request, exc)
        if response.status == 200:
            response = response.with_status(500)
        return response

    def _not_found(self, exc: RouteNotFound) -> Response:
        if not self.config.not_found_json:
            return self._responses.text("Not Found", status=404)
        return self._responses.json(
            {"error": "Route not found", "method": exc.method, "path": exc.path},
            status=404,
        )

    def _find_error_handler(self, exc: Exception, status: int) -> ErrorHandler | None:
        """Specific exception types first, then the status code, then base classes."""
        mro = type(exc).__mro__
        specific = [cls for cls in mro if cls not in _BASE_ERRORS]
        generic = [cls for cls in mro if cls in _BASE_ERRORS]
        for key in (*specific, status, *generic):
            handler = self._error_handlers.get(key)
            if handler is not None:
                return handler
        return None

    def _call_error_handler(self, handler: ErrorHandler, request: Request, exc: Exception) -> Response:
        """Invoke a user-registered error handler with introspected arguments.

        Error handlers may accept zero, one (request), or two (request, exc) args.
        Async error handlers run through the dispatch driver.
        """
        params = list(inspect.signature(handler).parameters.values())

        if len(params) >= 2:
            result = self._gate.dispatch(lambda: handler(request, exc), False)
        elif len(params) == 1:
            result = self._gate.dispatch(lambda: handler(request), False)
        else:
            result = self._gate.dispatch(handler, False)

        return negotiate(result, self._responses)

    # -- Lifecycle --

    def close(self) -> None:
        """Release the dispatch driver (and its event loop, if any)."""
        self._gate.close()

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Snapshot global middleware. MUST be called holding _freeze_lock."""
        self._middleware = (*self.config.default_middleware, *self._middleware_list)
        self._frozen = True
        logger.debug(
            "App frozen: %d routes, %d global middleware",
            len(self._router),
            len(self._middleware),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started handling requests. "
                "Register routes, middleware, and bindings before the first handle()."
            )
            raise RuntimeError(msg)
