"""Response factory: the injectable way to build typed responses.

Registered in every App container, so handlers can ask for it by
annotation::

    @app.get("/users/{id}")
    def show(id: int, responses: ResponseFactory) -> Response:
        return responses.json({"id": id})
"""

import json as json_module
import logging
from collections.abc import Mapping
from typing import Any

from wren.http.response import Response

logger = logging.getLogger("wren.server")

JSON_CONTENT_TYPE = "application/json"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class ResponseFactory:
    """Build ``Response`` objects for JSON, plain text and HTML bodies."""

    __slots__ = ()

    def json(
        self,
        data: Any,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Serialize *data* as compact JSON.

        Payloads that cannot be encoded produce an error object instead
        of raising, keeping the status the caller asked for.
        """
        try:
            body = json_module.dumps(data, separators=(",", ":"), default=_encode_default)
        except (TypeError, ValueError):
            logger.warning("Unable to encode %s as JSON", type(data).__name__)
            body = '{"error":"Unable to encode response payload."}'
        return self._respond(body, status, JSON_CONTENT_TYPE, headers)

    def text(
        self,
        content: str,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return self._respond(content, status, TEXT_CONTENT_TYPE, headers)

    def html(
        self,
        content: str,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        return self._respond(content, status, HTML_CONTENT_TYPE, headers)

    def _respond(
        self,
        body: str,
        status: int,
        content_type: str,
        headers: Mapping[str, str] | None,
    ) -> Response:
        extra = dict(headers or {})
        # An explicit Content-Type header overrides the default
        for name in list(extra):
            if name.lower() == "content-type":
                content_type = extra.pop(name)
        response = Response(body=body, status=status, content_type=content_type)
        if extra:
            response = response.with_headers(extra)
        return response


def _encode_default(value: Any) -> Any:
    """Fallback encoder: dataclasses and objects become their public fields."""
    import dataclasses

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if hasattr(value, "__dict__"):
        return {k: v for k, v in vars(value).items() if not k.startswith("_")}
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)
