"""Middleware protocol and Next type alias.

A middleware is any object with a ``process`` method::

    class Timing:
        def process(self, request: Request, next: Next) -> Response: ...

or any callable of the same shape::

    def timing(request: Request, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.

Middleware never suspends: it runs to completion before returning, even
when the route handler underneath is ``async def``.
"""

from collections.abc import Callable
from typing import Protocol, TypeAlias, runtime_checkable

from wren.http.request import Request
from wren.http.response import Response

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Response]

# A middleware reduced to its calling shape
MiddlewareCallable: TypeAlias = Callable[[Request, Next], Response]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for object middleware.

    ``process`` may inspect or replace the request, must call ``next``
    zero or one times, and must return a response::

        class RequireToken:
            def process(self, request: Request, next: Next) -> Response:
                if "authorization" not in request.headers:
                    return Response("Unauthorized", status=401)
                return next(request)
    """

    def process(self, request: Request, next: Next) -> Response: ...
