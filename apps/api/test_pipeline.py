# Request pipeline tests
#
# Origin guard, body limit, malformed JSON, the catch-all 500 handler,
# health, metrics and client log ingestion.

import logging

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from routers import system


class TestOriginGuard:

    def test_unknown_origin_rejected_before_handler(self, app, client):
        reached = []

        @app.get("/api/guarded")
        def guarded():
            reached.append(True)
            return {"ok": True}

        response = client.get("/api/guarded", headers={"Origin": "https://evil.example.com"})
        assert response.status_code == 403
        assert response.json() == {"detail": "Origin not allowed"}
        assert reached == []

    def test_unknown_origin_preflight_rejected(self, client):
        response = client.options("/api/auth/login", headers={
            "Origin": "https://evil.example.com",
            "Access-Control-Request-Method": "POST",
        })
        assert response.status_code == 403

    @pytest.mark.parametrize("origin", [
        "http://localhost:5173",
        "https://aarez-mgnmt.vercel.app",
        "https://aarez-git-feature-x.vercel.app",
    ])
    def test_allowed_origins_get_credentials_cors(self, client, origin):
        response = client.get("/api/health", headers={"Origin": origin})
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == origin
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_lookalike_domain_rejected(self, client):
        response = client.get("/api/health", headers={"Origin": "https://evil.vercel.app.example.com"})
        assert response.status_code == 403

    def test_no_origin_passes(self, client):
        assert client.get("/api/health").status_code == 200


class TestBodyHandling:

    def test_oversized_body_rejected(self, engine):
        small = Settings(secret_key="k", max_body_bytes=1024)
        limited = TestClient(create_app(settings=small, engine=engine))
        response = limited.post("/api/logs", json={"message": "x" * 2048})
        assert response.status_code == 413
        assert response.json() == {"detail": "Request body too large"}

    def test_chunked_body_without_length_is_counted(self, engine):
        small = Settings(secret_key="k", max_body_bytes=1024)
        limited = TestClient(create_app(settings=small, engine=engine))

        def chunks():
            for _ in range(4):
                yield b"x" * 1024

        response = limited.post("/api/logs", content=chunks(), headers={"Content-Type": "application/json"})
        assert response.status_code == 413
        assert response.json() == {"detail": "Request body too large"}

    def test_small_chunked_body_passes(self, engine):
        small = Settings(secret_key="k", max_body_bytes=1024)
        limited = TestClient(create_app(settings=small, engine=engine))

        def chunks():
            yield b'{"message": '
            yield b'"hello"}'

        response = limited.post("/api/logs", content=chunks(), headers={"Content-Type": "application/json"})
        assert response.status_code == 200

    def test_default_limit_is_ten_megabytes(self, settings):
        assert settings.max_body_bytes == 10 * 1024 * 1024

    def test_malformed_json(self, client):
        response = client.post("/api/auth/login", content=b"{not json",
                               headers={"Content-Type": "application/json"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request body"


class TestUnhandledErrors:

    def test_generic_500_without_internals(self, app, caplog):
        @app.get("/api/explode")
        def explode():
            raise RuntimeError("connection string postgres://secret@db")

        client = TestClient(app, raise_server_exceptions=False)
        with caplog.at_level(logging.ERROR):
            response = client.get("/api/explode")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
        assert "secret" not in response.text
        assert "connection string postgres://secret@db" in caplog.text


class TestHealth:

    def test_up(self, client):
        body = client.get("/api/health").json()
        assert body["ok"] is True
        assert body["database"] == "up"
        assert "timestamp" in body

    def test_down(self, client, monkeypatch):
        monkeypatch.setattr(system, "check_database", lambda engine: False)
        response = client.get("/api/health")
        assert response.status_code == 503
        assert response.json()["database"] == "down"

    def test_env_reports_flags_only(self, client, settings):
        body = client.get("/api/env").json()
        assert body["hasSecretKey"] is True
        assert settings.secret_key not in str(body)

    def test_env_flags_development_fallback_secret(self, engine):
        fallback = TestClient(create_app(settings=Settings(), engine=engine))
        assert fallback.get("/api/env").json()["hasSecretKey"] is False


class TestMetrics:

    def test_requests_are_counted_by_route_template(self, user_client):
        created = user_client.post("/api/investments", json={"amount": "1", "investment_date": "2024-01-01"}).json()
        user_client.put(f"/api/investments/{created['id']}", json={"notes": "x"})
        user_client.get("/api/health")

        text = user_client.get("/metrics").text
        assert 'http_requests_total{method="GET",route="/api/health",status="200"} 1.0' in text
        assert 'http_requests_total{method="PUT",route="/api/investments/{investment_id}",status="200"} 1.0' in text
        assert "http_request_duration_seconds_bucket" in text
        assert 'http_requests_in_flight{method="PUT"} 0.0' in text

    def test_unauthorized_counted_with_status(self, client):
        client.get("/api/doctors")
        text = client.get("/metrics").text
        assert 'http_requests_total{method="GET",route="/api/doctors",status="401"} 1.0' in text

    def test_requests_stopped_before_routing_are_unmatched(self, client):
        client.get("/api/doctors", headers={"Origin": "https://evil.example.com"})
        text = client.get("/metrics").text
        assert 'http_requests_total{method="GET",route="unmatched",status="403"} 1.0' in text

    def test_each_app_has_its_own_registry(self, client, engine, settings):
        client.get("/api/health")
        other = TestClient(create_app(settings=settings, engine=engine))
        assert 'route="/api/health"' not in other.get("/metrics").text


class TestClientLogs:

    def test_ingest_without_session(self, client, caplog):
        with caplog.at_level(logging.WARNING, logger="client"):
            response = client.post("/api/logs", json={
                "level": "warn", "message": "chart failed to render", "url": "/dashboard"
            })
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert "chart failed to render" in caplog.text

    def test_message_required(self, client):
        assert client.post("/api/logs", json={"level": "info"}).status_code == 400
