"""Immutable HTTP request.

Frozen metadata plus an already-buffered body. Transport layers build
these from whatever they parsed off the wire; wren never reads a socket.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from wren.http.headers import Headers
from wren.http.query import QueryParams

if TYPE_CHECKING:
    from wren.http.forms import FormData


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``attributes`` carries values attached during handling. The router
    copies matched path parameters into it before the pipeline runs.
    Use ``with_attributes()`` to derive a new request; the original is
    never changed.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    body: bytes = b""
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    # Private: parsed body cache (the dict is mutable, the field reference is not)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string."""
        if self.query.raw:
            return f"{self.path}?{self.query.raw}"
        return self.path

    # -- Body access --

    def text(self) -> str:
        """Read the body as text (UTF-8)."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON. Result is cached."""
        if "_json" not in self._cache:
            self._cache["_json"] = json_module.loads(self.body)
        return self._cache["_json"]

    def form(self) -> FormData:
        """Parse the body as URL-encoded form data. Result is cached."""
        if "_form" not in self._cache:
            from wren.http.forms import parse_urlencoded

            self._cache["_form"] = parse_urlencoded(self.body)
        return self._cache["_form"]

    # -- Derivation --

    def with_attributes(self, values: Mapping[str, Any]) -> Request:
        """Return a new Request with *values* merged into ``attributes``."""
        merged = {**self.attributes, **values}
        return replace(self, attributes=MappingProxyType(merged), _cache=self._cache)

    def with_body(self, body: bytes) -> Request:
        """Return a new Request with a different body."""
        return replace(self, body=body, _cache={})

    # -- Factory --

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        body: bytes | str = b"",
    ) -> Request:
        """Create a Request from a method and a ``path?query`` target.

        ::

            Request.build("GET", "/users/42?expand=posts")
        """
        path, _, query_string = target.partition("?")
        if isinstance(body, str):
            body = body.encode("utf-8")
        return cls(
            method=method.upper(),
            path=path or "/",
            headers=Headers(headers or ()),
            query=QueryParams(query_string),
            body=body,
        )
