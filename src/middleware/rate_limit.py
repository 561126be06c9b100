"""In-memory sliding-window rate limiter.

Per client IP, with a tighter budget on the credential endpoints to slow
down password guessing.  State lives on the middleware instance, so it is
per-process and resets on restart.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.config import Settings

CREDENTIAL_PATHS = {"/api/auth/login", "/api/auth/signup"}
EXEMPT_PATHS = {"/health"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding window rate limiter."""

    def __init__(self, app: Any, settings: Settings) -> None:
        super().__init__(app)
        self._max_requests = settings.rate_limit_per_minute
        self._max_credential_requests = settings.auth_rate_limit_per_minute
        self._window_seconds = 60
        # (ip, bucket) -> request timestamps, oldest first
        self._requests: dict[tuple[str, str], deque[float]] = defaultdict(deque)
        self._last_sweep = time.monotonic()

    def _client_ip(self, request: Request) -> str:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _sweep(self, now: float) -> None:
        """Forget clients whose newest request is older than the window."""
        cutoff = now - self._window_seconds
        stale = [
            key for key, window in self._requests.items()
            if not window or window[-1] <= cutoff
        ]
        for key in stale:
            del self._requests[key]
        self._last_sweep = now

    def _bucket(self, path: str) -> tuple[str, int]:
        if path in CREDENTIAL_PATHS:
            return "credentials", self._max_credential_requests
        return "api", self._max_requests

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        bucket, limit = self._bucket(request.url.path)
        key = (self._client_ip(request), bucket)
        now = time.monotonic()
        if now - self._last_sweep >= self._window_seconds:
            self._sweep(now)
        window = self._requests[key]
        while window and window[0] <= now - self._window_seconds:
            window.popleft()

        if len(window) >= limit:
            retry_after = int(self._window_seconds - (now - window[0]))
            return Response(
                content='{"detail":"Rate limit exceeded"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(max(retry_after, 1))},
            )

        window.append(now)

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(limit - len(window), 0))

        return response
