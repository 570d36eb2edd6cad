"""Tests for the FastAPI app factory, base routes and error handling."""

from __future__ import annotations

from fastapi.testclient import TestClient

from cardano_scanner.api.app import create_app
from cardano_scanner.config.settings import MetricsConfig, ServerConfig


class TestCreateApp:
    def test_routes_mounted(self, app_config) -> None:
        app = create_app(config=app_config)
        paths = {route.path for route in app.routes}
        assert "/health" in paths
        assert "/metrics" in paths
        assert "/api/v1/monitoring/addresses" in paths
        assert "/api/v1/webhooks/{webhook_id}/test" in paths
        assert "/api/v1/deliveries" in paths
        assert "/api/v1/blockchain/transactions/{tx_hash}" in paths

    def test_metrics_disabled(self, app_config) -> None:
        app_config.metrics = MetricsConfig(enabled=False)
        app = create_app(config=app_config)
        assert app.state.metrics is None

    def test_engine_uninitialized_outside_lifespan(self, app_config) -> None:
        app = create_app(config=app_config)
        client = TestClient(app)
        resp = client.get("/api/v1/webhooks", headers={"Authorization": "Bearer x"})
        assert resp.status_code == 503
        assert resp.json()["code"] == "engine-unavailable"


class TestBaseRoutes:
    def test_health(self, api) -> None:
        resp = api.client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert body["timestamp"].endswith("Z")
        assert body["components"]["engine"] == "ok"
        assert body["components"]["datastore"] == "ok"
        assert body["components"]["blockfrost"] == "disabled"

    def test_health_needs_no_auth(self, api) -> None:
        assert api.client.get("/health").status_code == 200

    def test_metrics_endpoint(self, api) -> None:
        api.client.get("/health")
        resp = api.client.get("/metrics")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert "http_request_total" in resp.text
        assert 'path="/health"' in resp.text

    def test_metrics_share_engine_registry(self, api) -> None:
        assert api.client.app.state.metrics is api.engine.metrics

    def test_cors_preflight(self, api) -> None:
        resp = api.client.options(
            "/api/v1/webhooks",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization",
            },
        )
        assert resp.status_code == 200
        assert "access-control-allow-origin" in resp.headers

    def test_cors_restricted_origins(self, app_config) -> None:
        app_config.server = ServerConfig(cors_origins=["https://ops.example.com"])
        client = TestClient(create_app(config=app_config))
        preflight = {
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "authorization",
        }

        allowed = client.options("/health", headers={"Origin": "https://ops.example.com", **preflight})
        denied = client.options("/health", headers={"Origin": "https://evil.example", **preflight})

        assert allowed.status_code == 200
        assert allowed.headers["access-control-allow-origin"] == "https://ops.example.com"
        assert denied.status_code == 400


class TestErrorHandler:
    def test_scanner_error_shape(self, api, read_headers) -> None:
        resp = api.client.get("/api/v1/webhooks/missing", headers=read_headers)
        assert resp.status_code == 404
        assert resp.json() == {"code": "webhook-not-found", "message": "webhook not found"}
