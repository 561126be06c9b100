"""JWT verification middleware for FastAPI.

Validates the Bearer token on every request (except public routes),
rejects revoked tokens, and sets ``request.state.auth`` with the
authenticated user context that downstream route handlers consume via
``get_current_user``.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.dependencies import AuthContext
from src.services.auth import InvalidTokenError, TokenService

logger = logging.getLogger("haru.auth")

# Paths that do not require authentication
PUBLIC_PATHS: set[str] = {
    "/health",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/api/auth/login",
    "/api/auth/signup",
}


def _is_public(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc")


def _unauthorized(detail: str) -> Response:
    return Response(
        content=f'{{"detail":"{detail}"}}',
        status_code=401,
        media_type="application/json",
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """Verify session JWTs and populate request.state.auth."""

    def __init__(self, app: Any, tokens: TokenService) -> None:
        super().__init__(app)
        self._tokens = tokens

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if _is_public(request.url.path):
            return await call_next(request)

        # OPTIONS requests pass through (CORS preflight)
        if request.method == "OPTIONS":
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header")

        token = auth_header.removeprefix("Bearer ").strip()

        try:
            payload = self._tokens.verify(token)
            user_id = uuid.UUID(payload["sub"])
        except InvalidTokenError as exc:
            logger.warning("JWT validation failed: %s", exc)
            return _unauthorized(str(exc))
        except ValueError:
            logger.warning("JWT validation failed: malformed subject")
            return _unauthorized("Invalid token")

        request.state.auth = AuthContext(
            user_id=user_id,
            username=payload.get("username", ""),
            token=token,
        )

        return await call_next(request)
