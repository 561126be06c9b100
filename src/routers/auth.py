"""Signup, login/logout, profile and menu preference endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from src.dependencies import AppSettings, CurrentUser, Store, Tokens
from src.models.users import (
    AuthResponse,
    LoginRequest,
    MenuSelection,
    SignupRequest,
    UserPreferences,
    UserPreferencesUpdate,
    UserRead,
)
from src.services.auth import dummy_password_hash, hash_password, verify_password
from src.services.storage import DuplicateRecordError

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("haru.auth")


def _public_user(row: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in row.items() if k != "password_hash"}


# ---------- Credentials ----------

@router.post("/signup", response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest, storage: Store, tokens: Tokens, settings: AppSettings
) -> Any:
    if await storage.get_user_by_username(body.username):
        raise HTTPException(status_code=409, detail="Username already exists")

    password_hash = await asyncio.to_thread(
        hash_password, body.password, settings.bcrypt_rounds
    )
    try:
        row = await storage.create_user(body.username, password_hash)
    except DuplicateRecordError:
        raise HTTPException(status_code=409, detail="Username already exists")

    logger.info("User signed up: %s", row["user_id"])
    return {
        "token": tokens.issue(row["user_id"], row["username"]),
        "user": _public_user(row),
    }


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest, storage: Store, tokens: Tokens, settings: AppSettings
) -> Any:
    row = await storage.get_user_by_username(body.username)
    if row:
        password_hash = row["password_hash"]
    else:
        password_hash = await asyncio.to_thread(dummy_password_hash, settings.bcrypt_rounds)
    valid = await asyncio.to_thread(verify_password, body.password, password_hash)
    if not row or not valid:
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    return {
        "token": tokens.issue(row["user_id"], row["username"]),
        "user": _public_user(row),
    }


@router.post("/logout", status_code=204)
async def logout(user: CurrentUser, tokens: Tokens) -> None:
    tokens.revoke(user.token)


# ---------- Current user ----------

@router.get("/me", response_model=UserRead)
async def me(user: CurrentUser, storage: Store) -> Any:
    row = await storage.get_user(user.user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return _public_user(row)


@router.get("/user-preferences", response_model=UserPreferences)
async def get_preferences(user: CurrentUser, storage: Store) -> Any:
    row = await storage.get_user(user.user_id)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return row


@router.put("/user-preferences", response_model=UserPreferences)
async def update_preferences(
    user: CurrentUser, body: UserPreferencesUpdate, storage: Store
) -> Any:
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    row = await storage.update_user_preferences(user.user_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return row


@router.post("/update-menu-preferences", response_model=UserRead)
async def update_menu_preferences(
    user: CurrentUser, body: MenuSelection, storage: Store
) -> Any:
    updates = body.model_dump()
    updates["menu_configured"] = True
    row = await storage.update_user_preferences(user.user_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="User not found")
    return _public_user(row)
