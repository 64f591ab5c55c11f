from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.testclient import TestClient

from healthwatch.logging import RequestIdFilter, request_id_var


@asynccontextmanager
async def _no_lifespan(_app: FastAPI):
    yield


def _load_app_with_no_lifespan():
    from healthwatch import main

    app = main.app
    app.router.lifespan_context = _no_lifespan
    return app


def test_security_headers_are_set():
    app = _load_app_with_no_lifespan()
    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.headers.get("X-Content-Type-Options") == "nosniff"
    assert response.headers.get("X-Frame-Options") == "DENY"
    assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"


def test_request_id_is_generated_when_missing():
    app = _load_app_with_no_lifespan()
    client = TestClient(app, raise_server_exceptions=False)

    response = client.get("/health")

    assert response.headers.get("X-Request-Id")


def test_request_id_filter_uses_context():
    token = request_id_var.set("abc")
    try:
        record = logging.LogRecord("healthwatch", logging.INFO, __file__, 1, "msg", None, None)
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)

    assert record.request_id == "abc"
