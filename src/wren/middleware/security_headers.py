"""Security headers middleware: X-Frame-Options, X-Content-Type-Options, Referrer-Policy.

Adds common security headers to every response (clickjacking, MIME
sniffing, referrer leakage). Headers the handler already set are left
alone.
"""

from dataclasses import dataclass

from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Configuration for security headers.

    All values are applied as-is. Use standard header values.
    """

    x_frame_options: str = "DENY"
    x_content_type_options: str = "nosniff"
    referrer_policy: str = "strict-origin-when-cross-origin"
    strict_transport_security: str | None = None


class SecurityHeadersMiddleware:
    """Add security headers to responses.

    Usage::

        from wren.middleware import SecurityHeadersMiddleware

        app.use(SecurityHeadersMiddleware())

    Or with custom config::

        app.use(SecurityHeadersMiddleware(SecurityHeadersConfig(
            x_frame_options="SAMEORIGIN",
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self.config = config or SecurityHeadersConfig()

    def process(self, request: Request, next: Next) -> Response:
        response = next(request)
        wanted = {
            "X-Frame-Options": self.config.x_frame_options,
            "X-Content-Type-Options": self.config.x_content_type_options,
            "Referrer-Policy": self.config.referrer_policy,
        }
        if self.config.strict_transport_security:
            wanted["Strict-Transport-Security"] = self.config.strict_transport_security
        missing = {name: value for name, value in wanted.items() if not response.has_header(name)}
        if missing:
            response = response.with_headers(missing)
        return response
