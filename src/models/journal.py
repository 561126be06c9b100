"""Pydantic models for diary entries, AI diary analyses, and memoir entries."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import Field

from src.models.base import HaruBase, TimestampMixin


# ---------- Enums ----------

class DiaryEmotion(str, Enum):
    happy = "happy"
    sad = "sad"
    angry = "angry"
    peaceful = "peaceful"
    excited = "excited"


# ---------- Diary ----------

class DiaryEntryBase(HaruBase):
    entry_date: date
    emotion: DiaryEmotion
    content: str = Field(min_length=1)


class DiaryEntryCreate(DiaryEntryBase):
    pass


class DiaryEntryUpdate(HaruBase):
    entry_date: date | None = None
    emotion: DiaryEmotion | None = None
    content: str | None = Field(default=None, min_length=1)


class DiaryEntryRead(DiaryEntryBase, TimestampMixin):
    entry_id: uuid.UUID
    user_id: uuid.UUID


# ---------- Live emotion preview ----------

class EmotionPreviewRequest(HaruBase):
    content: str


class EmotionPreviewRead(HaruBase):
    intensities: dict[str, int]
    dominant: str | None = None
    intensity: int = 0


# ---------- Diary Analysis ----------

class DiaryAnalysisBase(HaruBase):
    primary_emotion: str
    secondary_emotions: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0, le=1)
    sentiment_score: int = Field(ge=-100, le=100)
    themes: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    suggestions: str
    summary: str


class DiaryAnalysisRead(DiaryAnalysisBase):
    analysis_id: uuid.UUID
    entry_id: uuid.UUID
    created_at: datetime


# ---------- Memoir ----------

class MemoirEntryBase(HaruBase):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    period: str | None = None  # free-text span the memoir covers


class MemoirEntryCreate(MemoirEntryBase):
    pass


class MemoirEntryUpdate(HaruBase):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = Field(default=None, min_length=1)
    period: str | None = None


class MemoirEntryRead(MemoirEntryBase, TimestampMixin):
    memoir_id: uuid.UUID
    user_id: uuid.UUID


# ---------- Stats ----------

class JournalStats(HaruBase):
    diary_count: int
    memoir_count: int
    current_streak: int
    entries_this_month: int
    emotion_counts: dict[str, int]
