"""Tests for wren.testing: TestClient and assertion helpers."""

import pytest

from wren.app import App
from wren.config import AppConfig
from wren.http.request import Request
from wren.http.response import Response
from wren.testing import TestClient, assert_header, assert_json, assert_status


def _echo_app() -> App:
    app = App(AppConfig(driver="inline"))

    @app.route("/echo", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    def echo(request: Request) -> dict:
        return {
            "method": request.method,
            "content_type": request.content_type,
            "query": request.query.to_dict(),
            "body": request.text(),
            "trace": request.headers.get("x-trace"),
        }

    return app


class TestTestClient:
    def test_get_with_query(self) -> None:
        client = TestClient(_echo_app())
        data = client.get("/echo?a=1", query={"b": "2"}).json()
        assert data["query"] == {"a": "1", "b": "2"}

    def test_json_body(self) -> None:
        data = TestClient(_echo_app()).post("/echo", json={"x": 1}).json()
        assert data["content_type"] == "application/json"
        assert data["body"] == '{"x": 1}'

    def test_form_body(self) -> None:
        data = TestClient(_echo_app()).put("/echo", form={"name": "wren"}).json()
        assert data["content_type"] == "application/x-www-form-urlencoded"
        assert data["body"] == "name=wren"

    def test_explicit_content_type_wins(self) -> None:
        data = (
            TestClient(_echo_app())
            .patch("/echo", json=[1], headers={"Content-Type": "application/vnd.x+json"})
            .json()
        )
        assert data["content_type"] == "application/vnd.x+json"

    def test_delete_with_headers(self) -> None:
        data = TestClient(_echo_app()).delete("/echo", headers={"X-Trace": "t1"}).json()
        assert data["method"] == "DELETE"
        assert data["trace"] == "t1"

    def test_context_manager_closes_driver(self) -> None:
        app = App(AppConfig(driver="asyncio"))

        @app.get("/")
        async def index() -> str:
            return "ok"

        with TestClient(app) as client:
            assert client.get("/").text == "ok"
            assert app.gate.resolved
        assert not app.gate.resolved

    def test_enter_freezes_app(self) -> None:
        app = _echo_app()
        with TestClient(app):
            with pytest.raises(RuntimeError):
                app.get("/late")(lambda: "late")


class TestAssertions:
    def test_assert_status(self) -> None:
        assert_status(Response("ok", status=201), 201)
        with pytest.raises(AssertionError, match="Expected status 200, got 404"):
            assert_status(Response("missing", status=404), 200)

    def test_assert_json(self) -> None:
        response = Response('{"a": 1}', content_type="application/json")
        assert_json(response, {"a": 1})
        with pytest.raises(AssertionError):
            assert_json(response, {"a": 2})

    def test_assert_json_rejects_text(self) -> None:
        with pytest.raises(AssertionError, match="Expected a JSON response"):
            assert_json(Response("{}"), {})

    def test_assert_header(self) -> None:
        response = Response().with_header("X-Id", "7")
        assert_header(response, "x-id")
        assert_header(response, "X-Id", "7")
        with pytest.raises(AssertionError):
            assert_header(response, "X-Id", "8")
        with pytest.raises(AssertionError, match="no 'X-Other' header"):
            assert_header(response, "X-Other")
