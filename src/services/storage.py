"""Record store for users, diary entries, analyses, memoirs and period records.

Every query is scoped by ``user_id`` so one user can never read or modify
another user's rows; a row owned by someone else looks exactly like a
missing row.  Methods return plain dicts (``dict(asyncpg.Record)``) that
the routers validate into response models.

Ordering and filtering of period records for statistics is left to
``src.tracking``; the store only returns the user's full list.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from enum import Enum
from typing import Any

import asyncpg

from src.services.database import Database

logger = logging.getLogger("haru.storage")

# Columns that PATCH-style updates may touch, per table
_UPDATABLE: dict[str, set[str]] = {
    "users": {
        "use_diary", "use_memoir", "use_period_tracker",
        "menu_configured", "show_install_prompt",
    },
    "diary_entries": {"entry_date", "emotion", "content"},
    "memoir_entries": {"title", "content", "period"},
    "period_records": {"record_date", "record_type", "flow", "symptoms", "mood", "notes"},
}

_TOUCHES_UPDATED_AT = {"diary_entries", "memoir_entries"}


class DuplicateRecordError(Exception):
    """A unique constraint rejected the insert (username, analysis per entry)."""


def _plain(values: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in values.items()}


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Storage:
    """SQL-backed record store. One instance per request is cheap."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ---------- helpers ----------

    async def _update(
        self,
        table: str,
        id_column: str,
        record_id: uuid.UUID,
        user_id: uuid.UUID,
        updates: dict[str, Any],
    ) -> dict[str, Any] | None:
        unknown = set(updates) - _UPDATABLE[table]
        if unknown:
            raise ValueError(f"Cannot update {sorted(unknown)} on {table}")

        set_clauses = []
        params: list[Any] = [record_id, user_id]
        for i, (key, value) in enumerate(_plain(updates).items(), start=3):
            set_clauses.append(f"{key} = ${i}")
            params.append(value)
        if table in _TOUCHES_UPDATED_AT:
            set_clauses.append("updated_at = NOW()")

        row = await self._db.fetchrow(
            f"""
            UPDATE {table} SET {', '.join(set_clauses)}
            WHERE {id_column} = $1 AND user_id = $2
            RETURNING *
            """,
            *params,
        )
        return dict(row) if row else None

    async def _delete(
        self, table: str, id_column: str, record_id: uuid.UUID, user_id: uuid.UUID
    ) -> bool:
        result = await self._db.execute(
            f"DELETE FROM {table} WHERE {id_column} = $1 AND user_id = $2",
            record_id, user_id,
        )
        return result != "DELETE 0"

    # ---------- Users ----------

    async def get_user(self, user_id: uuid.UUID) -> dict[str, Any] | None:
        row = await self._db.fetchrow("SELECT * FROM users WHERE user_id = $1", user_id)
        return dict(row) if row else None

    async def get_user_by_username(self, username: str) -> dict[str, Any] | None:
        row = await self._db.fetchrow("SELECT * FROM users WHERE username = $1", username)
        return dict(row) if row else None

    async def create_user(self, username: str, password_hash: str) -> dict[str, Any]:
        try:
            row = await self._db.fetchrow(
                """
                INSERT INTO users (user_id, username, password_hash)
                VALUES (gen_random_uuid(), $1, $2)
                RETURNING *
                """,
                username, password_hash,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRecordError(f"Username {username!r} is taken") from exc
        return dict(row)

    async def update_user_preferences(
        self, user_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        unknown = set(updates) - _UPDATABLE["users"]
        if unknown:
            raise ValueError(f"Cannot update {sorted(unknown)} on users")
        set_clauses = []
        params: list[Any] = [user_id]
        for i, (key, value) in enumerate(updates.items(), start=2):
            set_clauses.append(f"{key} = ${i}")
            params.append(value)
        row = await self._db.fetchrow(
            f"UPDATE users SET {', '.join(set_clauses)} WHERE user_id = $1 RETURNING *",
            *params,
        )
        return dict(row) if row else None

    # ---------- Diary entries ----------

    async def list_diary_entries(
        self,
        user_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        conditions = ["user_id = $1"]
        params: list[Any] = [user_id]
        idx = 2

        if start_date:
            conditions.append(f"entry_date >= ${idx}")
            params.append(start_date)
            idx += 1
        if end_date:
            conditions.append(f"entry_date <= ${idx}")
            params.append(end_date)
            idx += 1

        query = (
            f"SELECT * FROM diary_entries WHERE {' AND '.join(conditions)} "
            "ORDER BY created_at DESC"
        )
        if limit is not None:
            query += f" LIMIT ${idx}"
            params.append(limit)

        rows = await self._db.fetch(query, *params)
        return [dict(r) for r in rows]

    async def search_diary_entries(
        self, user_id: uuid.UUID, query: str
    ) -> list[dict[str, Any]]:
        rows = await self._db.fetch(
            """
            SELECT * FROM diary_entries
            WHERE user_id = $1
              AND (content ILIKE '%' || $2 || '%' OR emotion ILIKE '%' || $2 || '%')
            ORDER BY created_at DESC
            """,
            user_id, _escape_like(query),
        )
        return [dict(r) for r in rows]

    async def get_diary_entry(
        self, user_id: uuid.UUID, entry_id: uuid.UUID
    ) -> dict[str, Any] | None:
        row = await self._db.fetchrow(
            "SELECT * FROM diary_entries WHERE entry_id = $1 AND user_id = $2",
            entry_id, user_id,
        )
        return dict(row) if row else None

    async def create_diary_entry(
        self, user_id: uuid.UUID, values: dict[str, Any]
    ) -> dict[str, Any]:
        v = _plain(values)
        row = await self._db.fetchrow(
            """
            INSERT INTO diary_entries (entry_id, user_id, entry_date, emotion, content)
            VALUES (gen_random_uuid(), $1, $2, $3, $4)
            RETURNING *
            """,
            user_id, v["entry_date"], v["emotion"], v["content"],
        )
        return dict(row)

    async def update_diary_entry(
        self, user_id: uuid.UUID, entry_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        return await self._update("diary_entries", "entry_id", entry_id, user_id, updates)

    async def delete_diary_entry(self, user_id: uuid.UUID, entry_id: uuid.UUID) -> bool:
        # diary_analyses rows go with it (ON DELETE CASCADE)
        return await self._delete("diary_entries", "entry_id", entry_id, user_id)

    # ---------- Diary analyses ----------

    async def get_diary_analysis(self, entry_id: uuid.UUID) -> dict[str, Any] | None:
        row = await self._db.fetchrow(
            "SELECT * FROM diary_analyses WHERE entry_id = $1", entry_id
        )
        return dict(row) if row else None

    async def create_diary_analysis(
        self, entry_id: uuid.UUID, values: dict[str, Any]
    ) -> dict[str, Any]:
        try:
            row = await self._db.fetchrow(
                """
                INSERT INTO diary_analyses (
                    analysis_id, entry_id, primary_emotion, secondary_emotions,
                    confidence, sentiment_score, themes, keywords, suggestions, summary
                ) VALUES (gen_random_uuid(), $1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING *
                """,
                entry_id,
                values["primary_emotion"], values["secondary_emotions"],
                values["confidence"], values["sentiment_score"],
                values["themes"], values["keywords"],
                values["suggestions"], values["summary"],
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRecordError(f"Entry {entry_id} already has an analysis") from exc
        return dict(row)

    async def delete_diary_analysis(self, entry_id: uuid.UUID) -> bool:
        result = await self._db.execute(
            "DELETE FROM diary_analyses WHERE entry_id = $1", entry_id
        )
        return result != "DELETE 0"

    # ---------- Memoir entries ----------

    async def list_memoir_entries(self, user_id: uuid.UUID) -> list[dict[str, Any]]:
        rows = await self._db.fetch(
            "SELECT * FROM memoir_entries WHERE user_id = $1 ORDER BY created_at DESC",
            user_id,
        )
        return [dict(r) for r in rows]

    async def get_memoir_entry(
        self, user_id: uuid.UUID, memoir_id: uuid.UUID
    ) -> dict[str, Any] | None:
        row = await self._db.fetchrow(
            "SELECT * FROM memoir_entries WHERE memoir_id = $1 AND user_id = $2",
            memoir_id, user_id,
        )
        return dict(row) if row else None

    async def create_memoir_entry(
        self, user_id: uuid.UUID, values: dict[str, Any]
    ) -> dict[str, Any]:
        row = await self._db.fetchrow(
            """
            INSERT INTO memoir_entries (memoir_id, user_id, title, content, period)
            VALUES (gen_random_uuid(), $1, $2, $3, $4)
            RETURNING *
            """,
            user_id, values["title"], values["content"], values.get("period"),
        )
        return dict(row)

    async def update_memoir_entry(
        self, user_id: uuid.UUID, memoir_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        return await self._update("memoir_entries", "memoir_id", memoir_id, user_id, updates)

    async def delete_memoir_entry(self, user_id: uuid.UUID, memoir_id: uuid.UUID) -> bool:
        return await self._delete("memoir_entries", "memoir_id", memoir_id, user_id)

    async def count_memoir_entries(self, user_id: uuid.UUID) -> int:
        return await self._db.fetchval(
            "SELECT COUNT(*) FROM memoir_entries WHERE user_id = $1", user_id
        )

    # ---------- Period records ----------

    async def list_period_records(self, user_id: uuid.UUID) -> list[dict[str, Any]]:
        rows = await self._db.fetch(
            """
            SELECT * FROM period_records WHERE user_id = $1
            ORDER BY record_date DESC, created_at DESC
            """,
            user_id,
        )
        return [dict(r) for r in rows]

    async def get_period_record(
        self, user_id: uuid.UUID, record_id: uuid.UUID
    ) -> dict[str, Any] | None:
        row = await self._db.fetchrow(
            "SELECT * FROM period_records WHERE record_id = $1 AND user_id = $2",
            record_id, user_id,
        )
        return dict(row) if row else None

    async def create_period_record(
        self, user_id: uuid.UUID, values: dict[str, Any]
    ) -> dict[str, Any]:
        v = _plain(values)
        row = await self._db.fetchrow(
            """
            INSERT INTO period_records (
                record_id, user_id, record_date, record_type, flow, symptoms, mood, notes
            ) VALUES (gen_random_uuid(), $1, $2, $3, $4, $5, $6, $7)
            RETURNING *
            """,
            user_id, v["record_date"], v["record_type"], v.get("flow"),
            v.get("symptoms") or [], v.get("mood"), v.get("notes"),
        )
        return dict(row)

    async def update_period_record(
        self, user_id: uuid.UUID, record_id: uuid.UUID, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        return await self._update("period_records", "record_id", record_id, user_id, updates)

    async def delete_period_record(self, user_id: uuid.UUID, record_id: uuid.UUID) -> bool:
        return await self._delete("period_records", "record_id", record_id, user_id)
