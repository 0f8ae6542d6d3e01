from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from carelink.logging import RequestContextFilter, actor_id_var, request_id_var


def test_security_headers_are_set(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
    assert "X-Request-Id" in response.headers


def test_request_id_is_echoed_in_header_and_error_body(client):
    response = client.get("/api/auth/me", headers={"X-Request-Id": "req-123"})

    assert response.status_code == 401
    assert response.headers["X-Request-Id"] == "req-123"
    assert response.json()["request_id"] == "req-123"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["status_code"] == 404
    assert body["type"] == "http_error"


def test_cors_middleware_present(app):
    cors = [m for m in app.user_middleware if m.cls is CORSMiddleware]
    assert cors


def test_filter_stamps_request_and_actor_ids():
    record = logging.LogRecord("carelink", logging.INFO, __file__, 1, "hello", None, None)
    request_token = request_id_var.set("req-9")
    actor_token = actor_id_var.set("profile-1")
    try:
        assert RequestContextFilter().filter(record) is True
    finally:
        request_id_var.reset(request_token)
        actor_id_var.reset(actor_token)

    assert record.request_id == "req-9"
    assert record.actor_id == "profile-1"


def test_filter_defaults_to_dash_outside_requests():
    record = logging.LogRecord("carelink", logging.INFO, __file__, 1, "hello", None, None)

    RequestContextFilter().filter(record)

    assert record.request_id == "-"
    assert record.actor_id == "-"


@pytest.mark.anyio
async def test_lifespan_calls_init_and_close(monkeypatch):
    from carelink import main

    called = {"init": 0, "close": 0}

    async def _init_db():
        called["init"] += 1

    async def _close_db():
        called["close"] += 1

    monkeypatch.setattr(main, "init_db", _init_db)
    monkeypatch.setattr(main, "close_db", _close_db)

    async with main.lifespan(FastAPI()):
        pass

    assert called == {"init": 1, "close": 1}


@pytest.mark.anyio
async def test_lifespan_propagates_database_failure(monkeypatch):
    from carelink import main

    async def _init_db():
        raise ConnectionError("db not ready")

    monkeypatch.setattr(main, "init_db", _init_db)

    with pytest.raises(ConnectionError):
        async with main.lifespan(FastAPI()):
            pass
