"""CRUD endpoints for diary entries, live emotion preview, and AI analysis."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.dependencies import Analyzer, CurrentUser, Store
from src.models.journal import (
    DiaryAnalysisRead,
    DiaryEntryCreate,
    DiaryEntryRead,
    DiaryEntryUpdate,
    EmotionPreviewRead,
    EmotionPreviewRequest,
)
from src.services.ai_analysis import AnalysisError
from src.services.storage import DuplicateRecordError
from src.tracking.emotion_keywords import EMOTION_ORDER, MIN_CONTENT_LENGTH, score_text

router = APIRouter(prefix="/diary-entries", tags=["diary"])
logger = logging.getLogger("haru.diary")


async def _owned_entry(storage: Any, user_id: uuid.UUID, entry_id: uuid.UUID) -> dict[str, Any]:
    row = await storage.get_diary_entry(user_id, entry_id)
    if not row:
        raise HTTPException(status_code=404, detail="Diary entry not found")
    return row


@router.get("", response_model=list[DiaryEntryRead])
async def list_entries(
    user: CurrentUser,
    storage: Store,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> Any:
    return await storage.list_diary_entries(
        user.user_id, start_date=start_date, end_date=end_date, limit=limit
    )


@router.get("/search", response_model=list[DiaryEntryRead])
async def search_entries(
    user: CurrentUser,
    storage: Store,
    q: str = Query(min_length=1, max_length=100),
) -> Any:
    return await storage.search_diary_entries(user.user_id, q)


@router.post("/emotion-preview", response_model=EmotionPreviewRead)
async def emotion_preview(user: CurrentUser, body: EmotionPreviewRequest) -> Any:
    """Keyword-based emotion reading of a draft, for live feedback while typing.

    Drafts shorter than the live tracker's minimum length get no reading.
    """
    if len(body.content.strip()) < MIN_CONTENT_LENGTH:
        return {
            "intensities": {emotion: 0 for emotion in EMOTION_ORDER},
            "dominant": None,
            "intensity": 0,
        }
    score = score_text(body.content)
    return {
        "intensities": score.intensities,
        "dominant": score.dominant,
        "intensity": score.intensity,
    }


@router.post("", response_model=DiaryEntryRead, status_code=201)
async def create_entry(user: CurrentUser, body: DiaryEntryCreate, storage: Store) -> Any:
    return await storage.create_diary_entry(user.user_id, body.model_dump())


@router.get("/{entry_id}", response_model=DiaryEntryRead)
async def get_entry(entry_id: uuid.UUID, user: CurrentUser, storage: Store) -> Any:
    return await _owned_entry(storage, user.user_id, entry_id)


@router.patch("/{entry_id}", response_model=DiaryEntryRead)
async def update_entry(
    entry_id: uuid.UUID, user: CurrentUser, body: DiaryEntryUpdate, storage: Store
) -> Any:
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    row = await storage.update_diary_entry(user.user_id, entry_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="Diary entry not found")
    return row


@router.delete("/{entry_id}", status_code=204)
async def delete_entry(entry_id: uuid.UUID, user: CurrentUser, storage: Store) -> None:
    if not await storage.delete_diary_entry(user.user_id, entry_id):
        raise HTTPException(status_code=404, detail="Diary entry not found")


# ---------- AI analysis ----------

@router.get("/{entry_id}/analysis", response_model=DiaryAnalysisRead)
async def get_analysis(entry_id: uuid.UUID, user: CurrentUser, storage: Store) -> Any:
    await _owned_entry(storage, user.user_id, entry_id)
    row = await storage.get_diary_analysis(entry_id)
    if not row:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return row


@router.post("/{entry_id}/analysis", response_model=DiaryAnalysisRead, status_code=201)
async def create_analysis(
    entry_id: uuid.UUID, user: CurrentUser, storage: Store, analyzer: Analyzer
) -> Any:
    """Run the AI analysis for an entry and store it.

    An entry holds at most one analysis; delete the existing one first to
    analyze again.
    """
    entry = await _owned_entry(storage, user.user_id, entry_id)
    if await storage.get_diary_analysis(entry_id):
        raise HTTPException(status_code=409, detail="Analysis already exists")

    try:
        result = await analyzer.analyze(entry["content"], str(entry["emotion"]))
    except AnalysisError as exc:
        logger.error("Analysis failed for entry %s: %s", entry_id, exc)
        raise HTTPException(status_code=502, detail="Diary analysis failed")

    try:
        return await storage.create_diary_analysis(entry_id, result.to_dict())
    except DuplicateRecordError:
        raise HTTPException(status_code=409, detail="Analysis already exists")


@router.delete("/{entry_id}/analysis", status_code=204)
async def delete_analysis(entry_id: uuid.UUID, user: CurrentUser, storage: Store) -> None:
    await _owned_entry(storage, user.user_id, entry_id)
    if not await storage.delete_diary_analysis(entry_id):
        raise HTTPException(status_code=404, detail="Analysis not found")
