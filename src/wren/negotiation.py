"""Result normalization: maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any

from wren.errors import UnsupportedResult
from wren.http.factory import ResponseFactory
from wren.http.response import Response


def negotiate(value: Any, factory: ResponseFactory) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``                  -> pass through
    2. ``(value, int)``              -> negotiate value, override status
    3. ``(value, int, dict)``        -> negotiate value, override status + headers
    4. ``str``                       -> 200, text/plain
    5. ``bytes``                     -> 200, application/octet-stream
    6. ``bool`` / number / ``None``  -> 200, JSON ``{"data": value}``
    7. ``dict`` / ``list`` / dataclass -> 200, application/json
    """
    match value:
        case Response():
            return value
        case tuple((inner, int() as status)) if not isinstance(inner, int) and not isinstance(status, bool):
            return negotiate(inner, factory).with_status(status)
        case tuple((inner, int() as status, Mapping() as headers)) if not isinstance(status, bool):
            return negotiate(inner, factory).with_status(status).with_headers(headers)
        case str():
            return factory.text(value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case bool() | int() | float() | None:
            return factory.json({"data": value})
        case Mapping():
            return factory.json(dict(value))
        case list() | tuple():
            return factory.json(value)
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return factory.json(value)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                f"Return str, bytes, dict, list, a number, a dataclass, or Response."
            )
            raise UnsupportedResult(msg)
