"""Password hashing, session token issue/verification, and token revocation.

Tokens are HS256 JWTs carrying the user's UUID in ``sub``.  Logging out
adds the token to a ``TokenBlacklist`` owned by the application (created
with the app, empty again after a restart).  Revoked tokens are forgotten
once they would have expired anyway.
"""

from __future__ import annotations

import logging
import secrets
import threading
import time
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

import bcrypt
import jwt as pyjwt

from src.config import Settings

logger = logging.getLogger("haru.auth")


class InvalidTokenError(Exception):
    """Token is malformed, expired, signed with another key, or revoked."""


# ---------- Passwords ----------

def hash_password(password: str, rounds: int = 10) -> str:
    """Hash password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


@lru_cache(maxsize=4)
def dummy_password_hash(rounds: int = 10) -> str:
    """A throwaway hash to check against when the username does not exist.

    Login then costs one bcrypt verification either way.
    """
    return hash_password(secrets.token_urlsafe(16), rounds)


# ---------- Revocation ----------

class TokenBlacklist:
    """In-memory set of revoked tokens, pruned by expiry."""

    def __init__(self) -> None:
        self._revoked: dict[str, float] = {}  # token -> exp (unix seconds)
        self._lock = threading.Lock()

    def revoke(self, token: str, expires_at: float) -> None:
        with self._lock:
            self._prune(time.time())
            self._revoked[token] = expires_at

    def is_revoked(self, token: str) -> bool:
        with self._lock:
            return token in self._revoked

    def clear(self) -> None:
        with self._lock:
            self._revoked.clear()

    def __len__(self) -> int:
        return len(self._revoked)

    def _prune(self, now: float) -> None:
        expired = [t for t, exp in self._revoked.items() if exp <= now]
        for token in expired:
            del self._revoked[token]


# ---------- Tokens ----------

class TokenService:
    """Issue and verify session JWTs."""

    def __init__(self, settings: Settings, blacklist: TokenBlacklist) -> None:
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._lifetime = timedelta(days=settings.jwt_expire_days)
        self.blacklist = blacklist

    def issue(self, user_id: uuid.UUID, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "username": username,
            "iat": now,
            "exp": now + self._lifetime,
            "jti": uuid.uuid4().hex,
        }
        return pyjwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode ``token`` and return its claims.

        Raises:
            InvalidTokenError: expired, tampered, malformed or revoked.
        """
        if self.blacklist.is_revoked(token):
            raise InvalidTokenError("Token revoked")
        try:
            payload = pyjwt.decode(token, self._secret, algorithms=[self._algorithm])
        except pyjwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except pyjwt.InvalidTokenError as exc:
            raise InvalidTokenError("Invalid token") from exc
        if "sub" not in payload:
            raise InvalidTokenError("Invalid token")
        return payload

    def revoke(self, token: str) -> None:
        """Blacklist ``token`` until its own expiry."""
        try:
            payload = pyjwt.decode(
                token, self._secret, algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
            expires_at = float(payload.get("exp", time.time()))
        except pyjwt.InvalidTokenError:
            logger.warning("Refusing to revoke an undecodable token")
            return
        self.blacklist.revoke(token, expires_at)
        logger.info("Token revoked for user %s", payload.get("sub"))
