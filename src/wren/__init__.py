"""Wren: an in-process HTTP request-handling core.

Routes requests, wraps handlers in middleware, binds handler arguments,
and runs plain or ``async def`` handlers behind one synchronous surface.
No sockets: transports build a ``Request`` and get a ``Response`` back.

Basic usage::

    from wren import App, Request

    app = App()

    @app.get("/users/{id}")
    def show(id: int) -> dict:
        return {"id": id}

    response = app.handle(Request.build("GET", "/users/42"))
    response.json()  # {"id": 42}
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Container",
    "DispatchGate",
    "DispatchStalled",
    "HTTPError",
    "MalformedRoute",
    "Middleware",
    "MiddlewareResolutionError",
    "Next",
    "PipelineBuilder",
    "Request",
    "Response",
    "ResponseFactory",
    "RouteDefinition",
    "RouteNotFound",
    "RouteTable",
    "UnknownBinding",
    "UnresolvableParameter",
    "UnsupportedResult",
    "WrenError",
    "factory",
    "suspend",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Container":
        from wren.container import Container

        return Container

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name == "ResponseFactory":
        from wren.http.factory import ResponseFactory

        return ResponseFactory

    if name in ("RouteDefinition", "RouteTable"):
        from wren.routing import route as _route
        from wren.routing import router as _router

        return getattr(_route, name, None) or getattr(_router, name)

    if name in ("Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("PipelineBuilder", "factory"):
        from wren.middleware import pipeline as _pipeline

        return getattr(_pipeline, name)

    if name in ("DispatchGate", "suspend"):
        from wren import dispatch as _dispatch

        return getattr(_dispatch, name)

    if name in (
        "ConfigurationError",
        "DispatchStalled",
        "HTTPError",
        "MalformedRoute",
        "MiddlewareResolutionError",
        "RouteNotFound",
        "UnknownBinding",
        "UnresolvableParameter",
        "UnsupportedResult",
        "WrenError",
    ):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
