"""Haru API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import Settings, get_settings
from src.middleware.jwt_auth import JWTAuthMiddleware
from src.middleware.rate_limit import RateLimitMiddleware
from src.middleware.security import SecurityHeadersMiddleware
from src.routers import auth, diary, health, memoir, period, stats
from src.services.ai_analysis import DiaryAnalyzer
from src.services.auth import TokenBlacklist, TokenService
from src.services.database import Database

logger = logging.getLogger("haru")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting Haru API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    await app.state.db.connect()
    yield
    await app.state.db.close()
    await app.state.analyzer.close()
    app.state.tokens.blacklist.clear()
    logger.info("Haru API shut down")


# ---------- App factory ----------

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Haru API",
        description=(
            "Personal journaling: diary entries with AI analysis, "
            "memoirs, and a menstrual cycle tracker."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Process-scoped services, owned by the app and reached through dependencies
    tokens = TokenService(settings, TokenBlacklist())
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.tokens = tokens
    app.state.analyzer = DiaryAnalyzer(settings)

    # ---------- Middleware (the last one added runs first) ----------

    # Security headers on every response
    app.add_middleware(SecurityHeadersMiddleware)

    # JWT authentication
    app.add_middleware(JWTAuthMiddleware, tokens=tokens)

    # Rate limiting (runs before auth)
    app.add_middleware(RateLimitMiddleware, settings=settings)

    # CORS is added last so it answers preflight before auth
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
    )

    # ---------- Health check (outside /api — always at /health) ----------
    app.include_router(health.router)

    # ---------- API routes ----------
    api_prefix = "/api"

    app.include_router(auth.router, prefix=api_prefix)
    app.include_router(diary.router, prefix=api_prefix)
    app.include_router(memoir.router, prefix=api_prefix)
    app.include_router(period.router, prefix=api_prefix)
    app.include_router(stats.router, prefix=api_prefix)

    return app


app = create_app()
