"""Pydantic models for users, credentials and menu preferences."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import Field

from src.models.base import HaruBase


# ---------- Credentials ----------

class SignupRequest(HaruBase):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(HaruBase):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ---------- Users ----------

class UserPreferences(HaruBase):
    use_diary: bool = False
    use_memoir: bool = False
    use_period_tracker: bool = False
    menu_configured: bool = False
    show_install_prompt: bool = True


class UserPreferencesUpdate(HaruBase):
    use_diary: bool | None = None
    use_memoir: bool | None = None
    use_period_tracker: bool | None = None
    menu_configured: bool | None = None
    show_install_prompt: bool | None = None


class MenuSelection(HaruBase):
    """Feature menus picked on first login."""

    use_diary: bool
    use_memoir: bool
    use_period_tracker: bool


class UserRead(UserPreferences):
    user_id: uuid.UUID
    username: str
    created_at: datetime


class AuthResponse(HaruBase):
    token: str
    user: UserRead
