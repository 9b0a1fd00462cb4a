"""
Tests for health check endpoints.
"""

from fastapi.testclient import TestClient

from app.db.json_store import JsonRecordStore
from app.main import app

client = TestClient(app)


def test_healthz_endpoint():
    """Test the basic health check endpoint."""
    response = client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert response.headers["X-Request-ID"]


def test_readyz_endpoint_store_healthy(monkeypatch, store):
    """Readiness is ok when the record store is readable."""
    monkeypatch.setattr("app.routes.health.record_store", store)

    response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["record_store"]["ok"] is True
    assert data["checks"]["record_store"]["counts"]["contacts"] == 0
    assert isinstance(data["checks"]["record_store"]["latency_ms"], (int, float))


def test_readyz_endpoint_store_corrupt(monkeypatch, tmp_path):
    """Readiness fails when the store file is corrupt, even under the degrade policy."""
    path = tmp_path / "db.json"
    path.write_text("{oops", encoding="utf-8")
    monkeypatch.setattr("app.routes.health.record_store", JsonRecordStore(path))

    response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["overall_ok"] is False
    assert data["checks"]["record_store"]["ok"] is False
    assert "corrupt" in data["checks"]["record_store"]["error"]


def test_readyz_ai_gateway_unconfigured_is_advisory(monkeypatch, store):
    """Missing OpenAI key is reported but does not make the API unready."""
    monkeypatch.setattr("app.routes.health.record_store", store)
    monkeypatch.setattr("app.services.ai_gateway_service.settings.OPENAI_API_KEY", None)
    monkeypatch.setattr("app.routes.health.ai_gateway.client", None)

    response = client.get("/readyz")

    data = response.json()
    assert data["overall_ok"] is True
    assert data["checks"]["ai_gateway"]["ok"] is False
    assert data["checks"]["ai_gateway"]["error"] == "OPENAI_API_KEY not set"
