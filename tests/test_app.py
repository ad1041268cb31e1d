import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import ValidationError

from wms.api.main import RequestTimeoutMiddleware, create_app
from wms.core import config
from wms.core.config import settings
from wms.core.errors import register_error_handlers
from wms.core.exceptions import EntityNotFoundError


def test_root_banner(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"message": f"{settings.APP_NAME} API is running", "version": settings.APP_VERSION}


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/live").json() == {"status": "alive"}
    ready = client.get("/ready")
    assert ready.status_code == 200
    assert ready.json()["db"] is True


def test_domain_error_body_shape(client):
    resp = client.get(f"/api/warehouses/{'a' * 32}")
    assert resp.status_code == 404
    body = resp.json()
    assert body["message"] == body["error"]["message"]
    assert body["error"]["code"] == "ENT100"
    assert body["error"]["details"] == {"entity": "Warehouse", "id": "a" * 32}


def test_validation_error_is_400(client):
    resp = client.post("/api/warehouses", json={"name": "No capacity", "location": "x"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "REQ002"
    assert "capacity" in body["message"]
    assert body["error"]["details"]["errors"]


def test_unhandled_error_returns_correlation_id():
    app = create_app()

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaput")

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Internal server error"
    assert len(body["cid"]) == 32
    assert "kaput" not in resp.text


def test_slow_request_times_out():
    app = FastAPI()
    app.add_middleware(RequestTimeoutMiddleware, timeout_seconds=0.05)
    register_error_handlers(app)

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(2)
        return {"done": True}

    @app.get("/missing")
    async def missing():
        raise EntityNotFoundError("Thing", "x")

    client = TestClient(app)
    resp = client.get("/slow")
    assert resp.status_code == 504
    assert resp.json()["error"]["code"] == "SYS400"

    assert client.get("/missing").status_code == 404


def test_settings_profiles():
    test_settings = config.TestSettings()
    assert test_settings.ENV == "test"
    assert test_settings.LOW_STOCK_THRESHOLD == 5

    converted = config.TestSettings(DATABASE_URL="postgres://u:p@db/wms")
    assert converted.DATABASE_URL == "postgresql://u:p@db/wms"

    with pytest.raises(ValidationError):
        config.ProdSettings(DATABASE_URL="sqlite:///./prod.db")
    with pytest.raises(ValidationError):
        config.TestSettings(REQUEST_TIMEOUT_SECONDS=0)
