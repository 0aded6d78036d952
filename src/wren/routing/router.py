"""Ordered route table with first-match-wins lookup.

Routes are tried in registration order and the first whose method and
template both match wins. There is no specificity scoring: register
``/users/me`` before ``/users/{id}`` or the former can never match.
Matching is O(routes), and route tables are built once at startup, so
the ordering discipline is left to the caller.
"""

import logging
from collections.abc import Iterator
from typing import Any

from wren.errors import ConfigurationError, RouteNotFound
from wren.http.request import Request
from wren.routing.route import MatchResult, RouteDefinition

logger = logging.getLogger("wren.routing")


class RouteTable:
    """Ordered collection of ``RouteDefinition`` entries.

    Usage::

        table = RouteTable()
        table.add(RouteDefinition("GET", "/users/{id}", show_user))
        match = table.match("GET", "/users/42")
        match.params  # {"id": "42"}

    The table exclusively owns its entries. It is safe to match from many
    threads at once as long as nobody calls ``add`` or ``clear`` meanwhile.
    """

    __slots__ = ("_names", "_routes")

    def __init__(self) -> None:
        self._routes: list[RouteDefinition] = []
        self._names: dict[str, RouteDefinition] = {}

    def add(self, route: RouteDefinition) -> None:
        """Append *route*. Later routes only win where earlier ones miss."""
        for existing in self._routes:
            if existing.method == route.method and existing.pattern.regex.pattern == route.pattern.regex.pattern:
                logger.warning(
                    "Route %s %s is shadowed by earlier route %s %s and can never match",
                    route.method,
                    route.path,
                    existing.method,
                    existing.path,
                )
                break

        if route.name is not None:
            if route.name in self._names:
                msg = f"Duplicate route name {route.name!r}"
                raise ConfigurationError(msg)
            self._names[route.name] = route

        self._routes.append(route)
        logger.debug("Registered %s %s", route.method, route.path)

    def clear(self) -> None:
        """Drop every route. Intended for tests and resets."""
        self._routes.clear()
        self._names.clear()

    @property
    def routes(self) -> tuple[RouteDefinition, ...]:
        """Registered routes in registration order."""
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(tuple(self._routes))

    def match(self, method: str, path: str) -> MatchResult:
        """Return the first route matching *method* and *path*.

        Raises ``RouteNotFound`` carrying the attempted method and path.
        """
        method = method.upper()
        for route in self._routes:
            params = route.match(method, path)
            if params is not None:
                return MatchResult(route=route, params=params, is_async=route.is_async)
        raise RouteNotFound(method, path)

    def match_request(self, request: Request) -> MatchResult:
        """``match()`` using the request's method and path."""
        return self.match(request.method, request.path)

    def url_for(self, name: str, **params: Any) -> str:
        """Build the path for the route registered under *name*.

        Raises ``ConfigurationError`` for an unknown name or a missing
        parameter.
        """
        route = self._names.get(name)
        if route is None:
            msg = f"No route named {name!r}"
            raise ConfigurationError(msg)
        try:
            return route.pattern.expand(params)
        except KeyError as exc:
            msg = f"Route {name!r} requires parameter {exc.args[0]!r}"
            raise ConfigurationError(msg) from None
