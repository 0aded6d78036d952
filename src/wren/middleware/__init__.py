"""Middleware: Protocol-based, no inheritance required.

A middleware is any object with ``process(request, next)`` or any
callable ``mw(request, next)`` returning a Response.

Built-in middleware:
    CSRFMiddleware -- Single-use CSRF tokens kept in a session mapping
    SecurityHeadersMiddleware -- X-Frame-Options, X-Content-Type-Options, Referrer-Policy
"""

from wren.middleware.csrf import CSRFConfig, CSRFMiddleware
from wren.middleware.pipeline import (
    MiddlewareFactory,
    MiddlewareResolver,
    PipelineBuilder,
    compose,
    factory,
)
from wren.middleware.protocol import Middleware, Next
from wren.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)

__all__ = [
    "CSRFConfig",
    "CSRFMiddleware",
    "Middleware",
    "MiddlewareFactory",
    "MiddlewareResolver",
    "Next",
    "PipelineBuilder",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "compose",
    "factory",
]
