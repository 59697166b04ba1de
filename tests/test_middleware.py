"""Tests for request logging, request ids and rate limiting."""

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.core.logging import NO_REQUEST, JSONFormatter, RequestIdFilter
from app.core.middleware import REQUEST_ID_HEADER
from app.core.rate_limit import limiter

limited_app = FastAPI()
limited_app.state.limiter = limiter
limited_app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@limited_app.get("/limited")
@limiter.limit("2/minute")
async def limited_endpoint(request: Request):
    return {"ok": True}


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("app.requests", logging.INFO, __file__, 1, "GET /health -> %d", (200,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_forwarded_header_does_not_reset_the_limit(self):
        transport = ASGITransport(app=limited_app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            statuses = [
                (await c.get("/limited", headers={"X-Forwarded-For": f"10.0.0.{i}"})).status_code
                for i in range(3)
            ]
        assert statuses == [200, 200, 429]


class TestRequestId:
    @pytest.mark.asyncio
    async def test_incoming_id_echoed_and_logged(self, client, caplog):
        caplog.set_level(logging.INFO, logger="app.requests")
        with patch("app.main.database_health", new_callable=AsyncMock, return_value=True):
            resp = await client.get("/health", headers={REQUEST_ID_HEADER: "req-42"})

        assert resp.headers[REQUEST_ID_HEADER] == "req-42"
        records = [r for r in caplog.records if r.name == "app.requests"]
        assert records[-1].request_id == "req-42"

    @pytest.mark.asyncio
    async def test_generated_when_missing(self, client, caplog):
        caplog.set_level(logging.INFO, logger="app.requests")
        resp = await client.get("/does-not-exist")

        assert resp.status_code == 404
        request_id = resp.headers[REQUEST_ID_HEADER]
        assert len(request_id) == 32
        records = [r for r in caplog.records if r.name == "app.requests"]
        assert records[-1].levelno == logging.WARNING
        assert records[-1].request_id == request_id


class TestFormatter:
    def test_json_includes_request_id(self):
        data = json.loads(JSONFormatter().format(_record(request_id="req-42")))
        assert data["request_id"] == "req-42"
        assert data["message"] == "GET /health -> 200"
        assert data["logger"] == "app.requests"

    def test_filter_defaults_request_id(self):
        record = _record()
        assert RequestIdFilter().filter(record) is True
        assert record.request_id == NO_REQUEST
        assert "request_id" not in json.loads(JSONFormatter().format(record))
