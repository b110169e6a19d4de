from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.app_factory import create_app
from app.core.config import LogSettings, RateLimitSettings, Settings
from app.core.logging import get_request_id
from app.core.middleware import RequestIdMiddleware


def _client(**overrides) -> TestClient:
    return TestClient(create_app(Settings(**overrides)))


def test_echoes_incoming_request_id_on_api_routes():
    resp = _client().get("/api/v1/heartbeat", headers={"X-Request-ID": "req-42"})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == "req-42"
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_generated_ids_are_unique_per_request():
    client = _client()

    first = client.get("/api/v1/heartbeat").headers.get("X-Request-ID")
    second = client.get("/api/v1/heartbeat").headers.get("X-Request-ID")

    assert first and second
    assert first != second


def test_honours_configured_header_name():
    client = _client(log=LogSettings(request_id_header="X-Trace", file_enabled=False))

    resp = client.get("/api/v1/heartbeat", headers={"X-Trace": "abc"})

    assert resp.headers.get("X-Trace") == "abc"
    assert "X-Request-ID" not in resp.headers


def test_configured_header_is_generated_when_missing():
    client = _client(log=LogSettings(request_id_header="X-Trace", file_enabled=False))

    resp = client.get("/api/v1/heartbeat")

    assert resp.headers.get("X-Trace")
    assert "X-Request-ID" not in resp.headers


def test_request_id_survives_rate_limit_rejection():
    client = _client(rate_limit=RateLimitSettings(enabled=True, requests_per_minute=1))
    headers = {"X-Forwarded-For": "203.0.113.90"}

    client.get("/api/v1/heartbeat", headers=headers)
    denied = client.get("/api/v1/heartbeat", headers={**headers, "X-Request-ID": "limited-1"})

    assert denied.status_code == 429
    assert denied.headers.get("X-Request-ID") == "limited-1"


def test_request_id_is_visible_to_handlers_and_cleared_afterwards():
    app = FastAPI()
    app.middleware("http")(RequestIdMiddleware("X-Request-ID"))

    @app.get("/whoami")
    async def whoami() -> dict:
        return {"request_id": get_request_id()}

    resp = TestClient(app).get("/whoami", headers={"X-Request-ID": "ctx-7"})

    assert resp.json() == {"request_id": "ctx-7"}
    assert get_request_id() is None
