"""Tests for the application factory and lifespan wiring."""

from __future__ import annotations

from fastapi.testclient import TestClient

from hublinks.infrastructure.config import AppConfig
from hublinks.infrastructure.hoster_resolvers import HDHub4uResolver, HubCloudResolver
from hublinks.interfaces.app import create_app


class TestCreateApp:
    def test_healthz_lists_resolvers(self) -> None:
        with TestClient(create_app(AppConfig())) as client:
            resp = client.get("/api/v1/healthz")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "resolvers": ["hubcloud", "hdhub4u"]}

    def test_lifespan_builds_resolvers(self) -> None:
        app = create_app(AppConfig())
        with TestClient(app):
            assert isinstance(app.state.hubcloud_resolver, HubCloudResolver)
            assert isinstance(app.state.hdhub4u_resolver, HDHub4uResolver)
            assert not app.state.http_client.is_closed
        assert app.state.http_client.is_closed

    def test_api_keys_enforced(self) -> None:
        app = create_app(AppConfig(api_keys=["k1"]))
        with TestClient(app) as client:
            assert client.get("/api/v1/stats/resolvers").status_code == 401
            assert client.get("/api/v1/healthz").status_code == 200
            resp = client.get("/api/v1/stats/resolvers", headers={"x-api-key": "k1"})

        assert resp.status_code == 200
        assert resp.json()["resolvers"] == {}

    def test_missing_url_through_full_app(self) -> None:
        with TestClient(create_app(AppConfig())) as client:
            resp = client.get("/api/v1/extractors/hubcloud")
        assert resp.status_code == 400
