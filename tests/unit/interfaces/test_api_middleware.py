"""Tests for ApiKeyMiddleware."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from hublinks.interfaces.api.middleware import ApiKeyMiddleware


async def _hello(request: Request) -> JSONResponse:
    return JSONResponse({"msg": "ok"})


def _create_app(keys: tuple[str, ...] = ("secret-key",)) -> Starlette:
    app = Starlette(
        routes=[Route("/api/v1/extractors/hubcloud", _hello), Route("/api/v1/healthz", _hello)]
    )
    app.add_middleware(ApiKeyMiddleware, api_keys=keys)
    return app


class TestApiKeyMiddleware:
    def test_missing_key_rejected(self) -> None:
        client = TestClient(_create_app())
        resp = client.get("/api/v1/extractors/hubcloud")

        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == 'Bearer realm="API Key Required"'
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "UNAUTHORIZED"
        assert body["error"].startswith("API key is required")

    def test_invalid_key_rejected(self) -> None:
        client = TestClient(_create_app())
        resp = client.get("/api/v1/extractors/hubcloud", headers={"x-api-key": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"].startswith("Invalid API key")

    def test_x_api_key_header(self) -> None:
        client = TestClient(_create_app())
        resp = client.get(
            "/api/v1/extractors/hubcloud", headers={"x-api-key": "secret-key"}
        )
        assert resp.status_code == 200

    def test_bearer_token(self) -> None:
        client = TestClient(_create_app())
        resp = client.get(
            "/api/v1/extractors/hubcloud",
            headers={"Authorization": "Bearer secret-key"},
        )
        assert resp.status_code == 200

    def test_query_param(self) -> None:
        client = TestClient(_create_app())
        resp = client.get("/api/v1/extractors/hubcloud?api_key=secret-key")
        assert resp.status_code == 200

    def test_header_takes_precedence_over_query(self) -> None:
        client = TestClient(_create_app())
        resp = client.get(
            "/api/v1/extractors/hubcloud?api_key=secret-key",
            headers={"x-api-key": "wrong"},
        )
        assert resp.status_code == 401

    def test_healthz_exempt(self) -> None:
        client = TestClient(_create_app())
        assert client.get("/api/v1/healthz").status_code == 200

    def test_no_keys_disables_check(self) -> None:
        client = TestClient(_create_app(keys=()))
        assert client.get("/api/v1/extractors/hubcloud").status_code == 200

    def test_non_bearer_authorization_falls_through_to_query(self) -> None:
        client = TestClient(_create_app())
        resp = client.get(
            "/api/v1/extractors/hubcloud?api_key=secret-key",
            headers={"Authorization": "Basic abc"},
        )
        assert resp.status_code == 200

    def test_non_bearer_authorization_alone_is_missing(self) -> None:
        client = TestClient(_create_app())
        resp = client.get(
            "/api/v1/extractors/hubcloud", headers={"Authorization": "Basic abc"}
        )
        assert resp.status_code == 401
        assert resp.json()["error"].startswith("API key is required")
