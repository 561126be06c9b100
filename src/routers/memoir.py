"""CRUD endpoints for memoir entries."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, HTTPException

from src.dependencies import CurrentUser, Store
from src.models.journal import MemoirEntryCreate, MemoirEntryRead, MemoirEntryUpdate

router = APIRouter(prefix="/memoir-entries", tags=["memoir"])


@router.get("", response_model=list[MemoirEntryRead])
async def list_entries(user: CurrentUser, storage: Store) -> Any:
    return await storage.list_memoir_entries(user.user_id)


@router.post("", response_model=MemoirEntryRead, status_code=201)
async def create_entry(user: CurrentUser, body: MemoirEntryCreate, storage: Store) -> Any:
    return await storage.create_memoir_entry(user.user_id, body.model_dump())


@router.get("/{memoir_id}", response_model=MemoirEntryRead)
async def get_entry(memoir_id: uuid.UUID, user: CurrentUser, storage: Store) -> Any:
    row = await storage.get_memoir_entry(user.user_id, memoir_id)
    if not row:
        raise HTTPException(status_code=404, detail="Memoir entry not found")
    return row


@router.patch("/{memoir_id}", response_model=MemoirEntryRead)
async def update_entry(
    memoir_id: uuid.UUID, user: CurrentUser, body: MemoirEntryUpdate, storage: Store
) -> Any:
    # period may be cleared explicitly with null
    updates = body.model_dump(exclude_unset=True)
    for required in ("title", "content"):
        if required in updates and updates[required] is None:
            del updates[required]
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    row = await storage.update_memoir_entry(user.user_id, memoir_id, updates)
    if not row:
        raise HTTPException(status_code=404, detail="Memoir entry not found")
    return row


@router.delete("/{memoir_id}", status_code=204)
async def delete_entry(memoir_id: uuid.UUID, user: CurrentUser, storage: Store) -> None:
    if not await storage.delete_memoir_entry(user.user_id, memoir_id):
        raise HTTPException(status_code=404, detail="Memoir entry not found")
