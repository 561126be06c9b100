"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from src.config import Settings
from src.services.ai_analysis import DiaryAnalyzer
from src.services.auth import TokenService
from src.services.storage import Storage


@dataclass(frozen=True)
class AuthContext:
    """Authenticated user context extracted from the session JWT."""

    user_id: uuid.UUID
    username: str
    token: str


async def get_current_user(request: Request) -> AuthContext:
    """Extract the authenticated user from the request state.

    The JWT auth middleware sets ``request.state.auth`` before routes run.
    """
    auth: AuthContext | None = getattr(request.state, "auth", None)
    if auth is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    return Storage(request.app.state.db)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_analyzer(request: Request) -> DiaryAnalyzer:
    return request.app.state.analyzer


def get_today() -> date:
    """Clock seam for calendar and streak computations."""
    return date.today()


# Annotated shortcuts for route signatures
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[Storage, Depends(get_storage)]
Tokens = Annotated[TokenService, Depends(get_token_service)]
Analyzer = Annotated[DiaryAnalyzer, Depends(get_analyzer)]
Today = Annotated[date, Depends(get_today)]
