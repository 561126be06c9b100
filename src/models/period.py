"""Pydantic models for period records and derived cycle statistics."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum

from pydantic import Field, field_validator, model_validator

from src.models.base import HaruBase


# ---------- Enums ----------

class RecordType(str, Enum):
    start = "start"
    end = "end"
    symptom = "symptom"
    mood = "mood"


class FlowLevel(str, Enum):
    light = "light"
    medium = "medium"
    heavy = "heavy"


def check_type_fields(
    record_type: RecordType,
    flow: FlowLevel | None,
    symptoms: list[str] | None,
    mood: str | None,
) -> None:
    """Raise ValueError unless the type-specific fields match ``record_type``."""
    if flow is not None and record_type != RecordType.start:
        raise ValueError("flow is only allowed on start records")
    if symptoms and record_type != RecordType.symptom:
        raise ValueError("symptoms are only allowed on symptom records")
    if mood is not None and record_type != RecordType.mood:
        raise ValueError("mood is only allowed on mood records")
    if record_type == RecordType.symptom and not symptoms:
        raise ValueError("symptom records need at least one symptom")
    if record_type == RecordType.mood and not mood:
        raise ValueError("mood records need a mood")


def normalize_symptoms(labels: list[str] | None) -> list[str] | None:
    """Treat symptom labels as a set: strip, drop blanks, dedupe in first-seen order."""
    if labels is None:
        return None
    return list(dict.fromkeys(s.strip() for s in labels if s and s.strip()))


# ---------- Period Records ----------

class PeriodRecordBase(HaruBase):
    record_date: date
    record_type: RecordType
    flow: FlowLevel | None = None
    symptoms: list[str] = Field(default_factory=list)
    mood: str | None = None
    notes: str | None = None

    @field_validator("symptoms")
    @classmethod
    def _symptoms_as_set(cls, v: list[str] | None) -> list[str] | None:
        return normalize_symptoms(v)


class PeriodRecordCreate(PeriodRecordBase):
    @model_validator(mode="after")
    def _fields_match_type(self) -> PeriodRecordCreate:
        check_type_fields(self.record_type, self.flow, self.symptoms, self.mood)
        return self


class PeriodRecordUpdate(HaruBase):
    record_date: date | None = None
    record_type: RecordType | None = None
    flow: FlowLevel | None = None
    symptoms: list[str] | None = None
    mood: str | None = None
    notes: str | None = None

    @field_validator("symptoms")
    @classmethod
    def _symptoms_as_set(cls, v: list[str] | None) -> list[str] | None:
        return normalize_symptoms(v)


class PeriodRecordRead(PeriodRecordBase):
    record_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime


# ---------- Derived statistics ----------

class CycleSummaryRead(HaruBase):
    cycle_length: int
    period_length: int
    last_period: date
    next_period: date
    ovulation: date
    gaps: list[int]
    count: int
    min_cycle: int
    max_cycle: int


class FrequencyRead(HaruBase):
    label: str
    count: int


class PeriodSummaryRead(HaruBase):
    summary: CycleSummaryRead | None = None  # None → not enough history yet
    symptom_frequencies: list[FrequencyRead]
    mood_frequencies: list[FrequencyRead]


class CalendarDayRead(HaruBase):
    day: date
    category: str


class CalendarMonthRead(HaruBase):
    year: int
    month: int
    today: date
    days: list[CalendarDayRead]
