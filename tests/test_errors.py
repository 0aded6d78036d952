"""Tests for wren.errors: the exception hierarchy."""

import pytest

from wren.errors import (
    ConfigurationError,
    DispatchStalled,
    HTTPError,
    MalformedRoute,
    MiddlewareResolutionError,
    RouteNotFound,
    UnknownBinding,
    UnresolvableParameter,
    UnsupportedResult,
    WrenError,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [
            ConfigurationError,
            MalformedRoute,
            HTTPError,
            RouteNotFound,
            UnresolvableParameter,
            MiddlewareResolutionError,
            DispatchStalled,
            UnknownBinding,
            UnsupportedResult,
        ],
    )
    def test_all_derive_from_base(self, exc_type: type) -> None:
        assert issubclass(exc_type, WrenError)

    def test_malformed_route_is_configuration_error(self) -> None:
        assert issubclass(MalformedRoute, ConfigurationError)

    def test_lookup_and_type_compat(self) -> None:
        assert issubclass(UnknownBinding, KeyError)
        assert issubclass(UnsupportedResult, TypeError)


class TestHTTPErrors:
    def test_http_error_str(self) -> None:
        assert str(HTTPError(status=418, detail="teapot")) == "418: teapot"
        assert str(HTTPError(status=418)) == "418"

    def test_route_not_found(self) -> None:
        exc = RouteNotFound("GET", "/ping")
        assert exc.status == 404
        assert exc.method == "GET"
        assert exc.path == "/ping"
        assert exc.detail == "Route does not exist: GET /ping"

    def test_unresolvable_parameter(self) -> None:
        exc = UnresolvableParameter("id")
        assert exc.status == 500
        assert exc.parameter == "id"
        assert "'id'" in exc.detail

    def test_middleware_resolution(self) -> None:
        exc = MiddlewareResolutionError("auth")
        assert exc.middleware == "auth"
        assert exc.detail == "Unable to resolve middleware 'auth'"

    def test_dispatch_stalled_default_detail(self) -> None:
        assert DispatchStalled().detail == "Async handler did not run to completion"

    def test_raisable(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            raise RouteNotFound("POST", "/x")
        assert exc_info.value.status == 404


class TestUnknownBinding:
    def test_message_names_key(self) -> None:
        class Service:
            pass

        exc = UnknownBinding(Service)
        assert exc.key is Service
        assert "Service" in str(exc)
        assert str(UnknownBinding("db")) == "No binding registered for 'db'"
