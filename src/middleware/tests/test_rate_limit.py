"""Tests for the sliding-window rate limiter."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, Request, Response

from src.config import Settings
from src.middleware import rate_limit
from src.middleware.rate_limit import RateLimitMiddleware


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _request(path: str, ip: str) -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [],
        "client": (ip, 50000),
    })


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(monotonic=fake))
    return fake


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimitMiddleware:
    settings = Settings(
        _env_file=None,
        database_url="postgresql://localhost/haru_test",
        jwt_secret="unit-test-secret-key-with-at-least-32-bytes",
        rate_limit_per_minute=2,
        auth_rate_limit_per_minute=1,
    )
    return RateLimitMiddleware(FastAPI(), settings=settings)


@pytest.fixture
def call_next() -> AsyncMock:
    return AsyncMock(return_value=Response(status_code=200))


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_limit_per_window(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock
    ) -> None:
        for _ in range(2):
            resp = await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
            assert resp.status_code == 200
        resp = await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) >= 1

    @pytest.mark.asyncio
    async def test_window_slides(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock, clock: FakeClock
    ) -> None:
        for _ in range(2):
            await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
        clock.now += 61
        resp = await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_credentials_have_own_bucket(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock
    ) -> None:
        ok = await limiter.dispatch(_request("/api/auth/login", "10.0.0.1"), call_next)
        blocked = await limiter.dispatch(_request("/api/auth/login", "10.0.0.1"), call_next)
        other = await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
        assert (ok.status_code, blocked.status_code, other.status_code) == (200, 429, 200)

    @pytest.mark.asyncio
    async def test_health_exempt(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock
    ) -> None:
        for _ in range(5):
            resp = await limiter.dispatch(_request("/health", "10.0.0.1"), call_next)
            assert resp.status_code == 200
        assert limiter._requests == {}


class TestEviction:
    @pytest.mark.asyncio
    async def test_quiet_clients_are_forgotten(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock, clock: FakeClock
    ) -> None:
        for i in range(50):
            await limiter.dispatch(_request("/api/stats", f"10.0.1.{i}"), call_next)
        assert len(limiter._requests) == 50

        clock.now += 61
        await limiter.dispatch(_request("/api/stats", "10.0.2.1"), call_next)

        assert list(limiter._requests) == [("10.0.2.1", "api")]

    @pytest.mark.asyncio
    async def test_active_clients_survive_sweep(
        self, limiter: RateLimitMiddleware, call_next: AsyncMock, clock: FakeClock
    ) -> None:
        await limiter.dispatch(_request("/api/stats", "10.0.0.1"), call_next)
        clock.now += 30
        await limiter.dispatch(_request("/api/stats", "10.0.0.2"), call_next)
        clock.now += 31

        limiter._sweep(clock.now)

        assert list(limiter._requests) == [("10.0.0.2", "api")]
