"""
NoteApp Backend - Middleware Tests
===================================

What:  Rate limiter window arithmetic, the 429 response it produces, and the
       access-log level mapping.
"""

import logging

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from noteapp.exceptions import RateLimitExceededError
from noteapp.middleware.logging import level_for_status
from noteapp.middleware.rate_limit import RateLimitMiddleware
from noteapp.middleware.request_id import RequestIDMiddleware


async def _noop_app(scope, receive, send):
    pass


class TestRateLimitWindow:
    def setup_method(self):
        self.limiter = RateLimitMiddleware(_noop_app, max_requests=2, window_seconds=60)

    def test_allows_up_to_limit(self):
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter.check("1.1.1.1", 101.0)

    def test_rejects_over_limit(self):
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter.check("1.1.1.1", 110.0)
        with pytest.raises(RateLimitExceededError) as exc_info:
            self.limiter.check("1.1.1.1", 120.0)
        # Oldest request (t=100) leaves the window at t=160
        assert exc_info.value.retry_after == 41

    def test_window_slides(self):
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter.check("1.1.1.1", 110.0)
        self.limiter.check("1.1.1.1", 161.0)

    def test_clients_are_independent(self):
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter.check("2.2.2.2", 100.0)

    def test_inactive_clients_cleaned_up(self):
        self.limiter.check("1.1.1.1", 100.0)
        self.limiter._cleanup_inactive_ips(window_start=200.0)
        assert "1.1.1.1" not in self.limiter._requests


class TestRateLimitResponse:
    @pytest.mark.asyncio
    async def test_returns_429_with_retry_after(self):
        app = FastAPI()

        @app.get("/ping")
        async def ping():
            return {"ok": True}

        app.add_middleware(RateLimitMiddleware, max_requests=10, window_seconds=60)
        app.add_middleware(RequestIDMiddleware)

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            for _ in range(10):
                assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping")

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) >= 1
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["details"]["retry_after"] == int(response.headers["retry-after"])


class TestAccessLogLevel:
    def test_levels(self):
        assert level_for_status(200) == logging.INFO
        assert level_for_status(404) == logging.WARNING
        assert level_for_status(500) == logging.ERROR
