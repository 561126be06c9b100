"""Journal activity statistics."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from src.dependencies import CurrentUser, Store, Today
from src.models.journal import JournalStats
from src.tracking.journal_stats import compute_journal_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=JournalStats)
async def get_stats(user: CurrentUser, storage: Store, today: Today) -> Any:
    entries = await storage.list_diary_entries(user.user_id)
    memoir_count = await storage.count_memoir_entries(user.user_id)
    return compute_journal_stats(
        ((e["entry_date"], e["emotion"]) for e in entries),
        memoir_count=memoir_count,
        today=today,
    )
