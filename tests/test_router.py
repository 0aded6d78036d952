"""Tests for wren.routing.router: ordered first-match-wins route table."""

import logging

import pytest

from wren.errors import ConfigurationError, RouteNotFound
from wren.http.request import Request
from wren.routing.route import RouteDefinition
from wren.routing.router import RouteTable


def _handler() -> str:
    return "ok"


def _other() -> str:
    return "other"


def _route(method: str, path: str, handler=_handler, **kwargs) -> RouteDefinition:
    return RouteDefinition(method=method, path=path, handler=handler, **kwargs)


class TestMatch:
    def test_static(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users"))
        match = table.match("GET", "/users")
        assert match.route.path == "/users"
        assert match.params == {}

    def test_params(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/{id}/posts/{slug}"))
        match = table.match("GET", "/users/42/posts/hello-world")
        assert match.params == {"id": "42", "slug": "hello-world"}

    def test_method_case_insensitive(self) -> None:
        table = RouteTable()
        table.add(_route("get", "/users"))
        assert table.match("Get", "/users").route.method == "GET"

    def test_match_request(self) -> None:
        table = RouteTable()
        table.add(_route("POST", "/items"))
        match = table.match_request(Request.build("POST", "/items?draft=1"))
        assert match.route.path == "/items"

    def test_is_async_flag(self) -> None:
        async def handler() -> str:
            return "ok"

        table = RouteTable()
        table.add(_route("GET", "/a", handler))
        table.add(_route("GET", "/s"))
        assert table.match("GET", "/a").is_async is True
        assert table.match("GET", "/s").is_async is False


class TestFirstMatchWins:
    def test_earlier_overlapping_route_wins(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/{id}", _handler))
        table.add(_route("GET", "/users/me", _other))
        match = table.match("GET", "/users/me")
        assert match.route.handler is _handler
        assert match.params == {"id": "me"}

    def test_specific_route_registered_first(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/me", _other))
        table.add(_route("GET", "/users/{id}", _handler))
        assert table.match("GET", "/users/me").route.handler is _other
        assert table.match("GET", "/users/7").route.handler is _handler

    def test_identical_template_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/{id}"))
        with caplog.at_level(logging.WARNING, logger="wren.routing"):
            table.add(_route("GET", "/users/{user}", _other))
        assert "shadowed" in caplog.text
        assert len(table) == 2

    def test_same_template_other_method_is_not_shadowed(self, caplog: pytest.LogCaptureFixture) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users"))
        with caplog.at_level(logging.WARNING, logger="wren.routing"):
            table.add(_route("POST", "/users"))
        assert "shadowed" not in caplog.text


class TestMethodSensitivity:
    def test_post_only_route(self) -> None:
        table = RouteTable()
        table.add(_route("POST", "/ping"))
        assert table.match("POST", "/ping").route.method == "POST"
        with pytest.raises(RouteNotFound) as exc_info:
            table.match("GET", "/ping")
        assert exc_info.value.method == "GET"
        assert exc_info.value.path == "/ping"
        assert exc_info.value.status == 404

    def test_same_path_two_methods(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/items", _handler))
        table.add(_route("POST", "/items", _other))
        assert table.match("GET", "/items").route.handler is _handler
        assert table.match("POST", "/items").route.handler is _other


class TestNotFound:
    def test_empty_table(self) -> None:
        with pytest.raises(RouteNotFound, match="Route does not exist: GET /"):
            RouteTable().match("GET", "/")

    def test_method_uppercased_in_error(self) -> None:
        table = RouteTable()
        with pytest.raises(RouteNotFound) as exc_info:
            table.match("delete", "/x")
        assert exc_info.value.method == "DELETE"


class TestTableManagement:
    def test_routes_in_registration_order(self) -> None:
        table = RouteTable()
        first = _route("GET", "/a")
        second = _route("GET", "/b")
        table.add(first)
        table.add(second)
        assert table.routes == (first, second)
        assert list(table) == [first, second]
        assert len(table) == 2

    def test_clear(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/a", name="a"))
        table.clear()
        assert len(table) == 0
        with pytest.raises(RouteNotFound):
            table.match("GET", "/a")
        table.add(_route("GET", "/a", name="a"))

    def test_duplicate_name_rejected(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/a", name="home"))
        with pytest.raises(ConfigurationError, match="Duplicate route name"):
            table.add(_route("GET", "/b", name="home"))


class TestUrlFor:
    def test_builds_path(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/{id}/posts/{slug}", name="post"))
        assert table.url_for("post", id=42, slug="hi") == "/users/42/posts/hi"

    def test_unknown_name(self) -> None:
        with pytest.raises(ConfigurationError, match="No route named 'missing'"):
            RouteTable().url_for("missing")

    def test_missing_param(self) -> None:
        table = RouteTable()
        table.add(_route("GET", "/users/{id}", name="user"))
        with pytest.raises(ConfigurationError, match="requires parameter 'id'"):
            table.url_for("user")
