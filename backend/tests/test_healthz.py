from __future__ import annotations

from fastapi.testclient import TestClient

from familyhub.config import Settings
from familyhub.db.session import Database
from familyhub.main import create_app


def test_liveness_endpoint(client) -> None:
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_database_health_endpoint_success(client) -> None:
    response = client.get("/healthz/database")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["dialect"] == "sqlite"
    assert "pool" in payload


def test_database_health_endpoint_failure() -> None:
    settings = Settings(FAMILYHUB_DATABASE_URL=None)
    app = create_app(settings, Database(settings))
    with TestClient(app) as client:
        response = client.get("/healthz/database")
    assert response.status_code == 503
    assert response.json()["detail"] == "FAMILYHUB_DATABASE_URL must be configured before using the database."
