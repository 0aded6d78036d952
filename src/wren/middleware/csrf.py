"""CSRF protection middleware: single-use tokens kept in a session mapping.

Tokens are generated with ``generate_token()`` and stored in the session
under ``session_key``. State-changing requests (POST, PUT, PATCH, DELETE)
must carry one of those tokens in the ``field_name`` field of a form or
JSON body, or in the ``header_name`` header. A valid token is consumed.

Usage::

    session: dict[str, Any] = load_session(...)
    csrf = CSRFMiddleware(session)
    token = csrf.generate_token()     # render into the form

    app.use(csrf)
"""

import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Any

from wren.errors import ConfigurationError, HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next

# Methods that mutate state and need CSRF protection
_UNSAFE_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CSRFTokenMissing(HTTPError):  # noqa: N818
    """403: an unsafe request carried no token."""

    def __init__(self) -> None:
        super().__init__(status=403, detail="CSRF token is required.")


class CSRFTokenInvalid(HTTPError):  # noqa: N818
    """403: the submitted token is not one the session issued."""

    def __init__(self) -> None:
        super().__init__(status=403, detail="This CSRF token is invalid.")


@dataclass(frozen=True, slots=True)
class CSRFConfig:
    """CSRF middleware configuration.

    Attributes:
        field_name: Body field carrying the token.
        header_name: HTTP header carrying the token (AJAX clients).
        session_key: Key under which issued tokens are stored.
        limit: Maximum number of outstanding tokens; oldest are dropped.
        token_bytes: Random bytes per token (hex-encoded).
    """

    field_name: str = "_csrf"
    header_name: str = "X-CSRF-Token"
    session_key: str = "csrf_tokens"
    limit: int = 50
    token_bytes: int = 16


class CSRFMiddleware:
    """Validate and consume CSRF tokens on unsafe methods."""

    __slots__ = ("_config", "_session")

    def __init__(
        self,
        session: MutableMapping[str, Any],
        config: CSRFConfig | None = None,
    ) -> None:
        if not isinstance(session, MutableMapping):
            msg = "CSRFMiddleware requires a mutable mapping as its session store"
            raise ConfigurationError(msg)
        self._session = session
        self._config = config or CSRFConfig()

    @property
    def config(self) -> CSRFConfig:
        return self._config

    def process(self, request: Request, next: Next) -> Response:
        if request.method in _UNSAFE_METHODS:
            submitted = self._submitted_token(request)
            if submitted is None:
                raise CSRFTokenMissing
            if submitted not in self._tokens():
                raise CSRFTokenInvalid
            self.remove_token(submitted)
        return next(request)

    def generate_token(self) -> str:
        """Issue a new token and remember it in the session."""
        token = secrets.token_hex(self._config.token_bytes)
        tokens = [*self._tokens(), token]
        self._session[self._config.session_key] = self._limit(tokens)
        return token

    def remove_token(self, token: str) -> None:
        tokens = self._tokens()
        if token in tokens:
            tokens.remove(token)
            self._session[self._config.session_key] = tokens

    def _tokens(self) -> list[str]:
        return list(self._session.get(self._config.session_key, ()))

    def _limit(self, tokens: list[str]) -> list[str]:
        overflow = len(tokens) - self._config.limit
        return tokens[overflow:] if overflow > 0 else tokens

    def _submitted_token(self, request: Request) -> str | None:
        """Token from the header, else from a form or JSON body."""
        cfg = self._config
        submitted = request.headers.get(cfg.header_name)
        if submitted is not None:
            return submitted

        ct = (request.content_type or "").lower()
        if "application/x-www-form-urlencoded" in ct:
            return request.form().get(cfg.field_name)
        if "json" in ct and request.body:
            try:
                payload = request.json()
            except ValueError:
                return None
            if isinstance(payload, dict):
                value = payload.get(cfg.field_name)
                return value if isinstance(value, str) else None
        return None
