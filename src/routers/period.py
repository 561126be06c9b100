"""Period record CRUD plus derived cycle summary and calendar views."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from src.dependencies import CurrentUser, Store, Today
from src.models.period import (
    CalendarMonthRead,
    PeriodRecordCreate,
    PeriodRecordRead,
    PeriodRecordUpdate,
    PeriodSummaryRead,
    check_type_fields,
)
from src.tracking.cycle_stats import (
    PeriodObservation,
    build_calendar_month,
    compute_cycle_summary,
    compute_mood_frequencies,
    compute_symptom_frequencies,
)

router = APIRouter(prefix="/period-records", tags=["period tracker"])


def _observations(rows: list[dict[str, Any]]) -> list[PeriodObservation]:
    return [
        PeriodObservation(
            record_date=r["record_date"],
            record_type=r["record_type"],
            flow=r.get("flow"),
            symptoms=list(r.get("symptoms") or []),
            mood=r.get("mood"),
        )
        for r in rows
    ]


@router.get("", response_model=list[PeriodRecordRead])
async def list_records(user: CurrentUser, storage: Store) -> Any:
    return await storage.list_period_records(user.user_id)


@router.post("", response_model=PeriodRecordRead, status_code=201)
async def create_record(user: CurrentUser, body: PeriodRecordCreate, storage: Store) -> Any:
    return await storage.create_period_record(user.user_id, body.model_dump())


@router.get("/summary", response_model=PeriodSummaryRead)
async def get_summary(user: CurrentUser, storage: Store) -> Any:
    """Cycle prediction plus symptom and mood tallies.

    ``summary`` is null until at least two period starts are logged.
    """
    observations = _observations(await storage.list_period_records(user.user_id))
    return {
        "summary": compute_cycle_summary(observations),
        "symptom_frequencies": compute_symptom_frequencies(observations),
        "mood_frequencies": compute_mood_frequencies(observations),
    }


@router.get("/calendar", response_model=CalendarMonthRead)
async def get_calendar(
    user: CurrentUser,
    storage: Store,
    today: Today,
    year: int | None = Query(default=None, ge=1900, le=2200),
    month: int | None = Query(default=None, ge=1, le=12),
) -> Any:
    """Display category for every day of a month (defaults to the current month)."""
    year = year or today.year
    month = month or today.month
    observations = _observations(await storage.list_period_records(user.user_id))
    summary = compute_cycle_summary(observations)
    days = build_calendar_month(year, month, observations, summary, today)
    return {
        "year": year,
        "month": month,
        "today": today,
        "days": [{"day": d, "category": category} for d, category in days],
    }


@router.get("/{record_id}", response_model=PeriodRecordRead)
async def get_record(record_id: uuid.UUID, user: CurrentUser, storage: Store) -> Any:
    row = await storage.get_period_record(user.user_id, record_id)
    if not row:
        raise HTTPException(status_code=404, detail="Period record not found")
    return row


@router.patch("/{record_id}", response_model=PeriodRecordRead)
async def update_record(
    record_id: uuid.UUID, user: CurrentUser, body: PeriodRecordUpdate, storage: Store
) -> Any:
    updates = body.model_dump(exclude_unset=True)
    for required in ("record_date", "record_type"):
        if required in updates and updates[required] is None:
            del updates[required]
    if "symptoms" in updates and updates["symptoms"] is None:
        updates["symptoms"] = []
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    existing = await storage.get_period_record(user.user_id, record_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Period record not found")

    # the merged record must still satisfy the per-type field rules
    merged = PeriodRecordRead.model_validate({**existing, **updates})
    try:
        check_type_fields(merged.record_type, merged.flow, merged.symptoms, merged.mood)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    row = await storage.update_period_record(user.user_id, record_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="Period record not found")
    return row


@router.delete("/{record_id}", status_code=204)
async def delete_record(record_id: uuid.UUID, user: CurrentUser, storage: Store) -> None:
    if not await storage.delete_period_record(user.user_id, record_id):
        raise HTTPException(status_code=404, detail="Period record not found")
