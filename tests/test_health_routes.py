"""Tests for health, readiness and system information endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import DocsSettings, RateLimitSettings, Settings


@pytest.fixture
def client() -> TestClient:
    settings = Settings(rate_limit=RateLimitSettings(enabled=True, requests_per_minute=1000))
    return TestClient(create_app(settings))


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
def test_health(client: TestClient, path: str) -> None:
    resp = client.get(path)

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["service"] == "clean-api"
    assert data["version"] == "1.0.0"
    assert data["uptime"]
    assert data["timestamp"]


def test_heartbeat(client: TestClient) -> None:
    data = client.get("/api/v1/heartbeat").json()

    assert data["status"] == "alive"
    assert data["service"] == "clean-api"


def test_system_info(client: TestClient) -> None:
    resp = client.get("/api/v1/system")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["num_cpu"] >= 1
    assert data["num_threads"] >= 1
    assert data["python_version"].count(".") == 2
    assert {"allocated_blocks", "gc_objects", "gc_collections"} <= data["memory"].keys()


def test_readiness_reports_checks(client: TestClient) -> None:
    data = client.get("/api/v1/ready").json()

    assert data["status"] == "ready"
    assert data["checks"]["rate_limiter"] == "healthy"
    assert data["checks"]["database"] == "not_configured"


def test_readiness_with_rate_limiting_disabled() -> None:
    settings = Settings(rate_limit=RateLimitSettings(enabled=False, requests_per_minute=10))
    data = TestClient(create_app(settings)).get("/api/v1/ready").json()

    assert data["checks"]["rate_limiter"] == "disabled"


def test_liveness(client: TestClient) -> None:
    data = client.get("/api/v1/live").json()

    assert data["status"] == "alive"
    assert data["checks"] is None


def test_openapi_documents_rate_limit_response(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    assert "TooManyRequests" in schema["components"]["responses"]
    health_get = schema["paths"]["/api/v1/health"]["get"]
    assert health_get["responses"]["429"] == {"$ref": "#/components/responses/TooManyRequests"}
    assert any(tag["name"] == "Health" for tag in schema["tags"])


def test_docs_can_be_disabled() -> None:
    settings = Settings(docs=DocsSettings(enabled=False))
    client = TestClient(create_app(settings))

    assert client.get("/openapi.json").status_code == 404
    assert client.get("/docs").status_code == 404
