"""Menstrual cycle statistics engine.

Derives cycle length, next-period prediction, ovulation estimate and
symptom/mood frequency tables from a user's logged period records.

Calendar averaging only:
- cycle length is the rounded mean of the gaps between consecutive
  period start dates
- ovulation is a fixed 14 days before the predicted next start
- period length is a constant (``end`` records are stored but not used)

Everything here is a pure function of its inputs.  Callers pass ``today``
explicitly so the calendar classification never reads the clock.
"""

from __future__ import annotations

import calendar
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable

logger = logging.getLogger("haru.tracking.cycle_stats")

DEFAULT_PERIOD_LENGTH = 5
LUTEAL_PHASE_DAYS = 14
TOP_SYMPTOMS = 5

# Calendar day categories, highest priority first
DAY_TODAY = "today"
DAY_PERIOD = "period"
DAY_PREDICTED_NEXT = "predicted_next"
DAY_FERTILE = "fertile"
DAY_NONE = "none"


@dataclass
class PeriodObservation:
    """One logged observation on one calendar day.

    Attributes:
        record_date: Day of the observation.  A ``datetime`` is accepted and
                     reduced to its date.
        record_type: 'start', 'end', 'symptom' or 'mood'.
        flow:        Flow intensity, start records only.
        symptoms:    Symptom labels, symptom records only.
        mood:        Mood label, mood records only.
    """

    record_date: date
    record_type: str
    flow: str | None = None
    symptoms: list[str] = field(default_factory=list)
    mood: str | None = None


@dataclass
class CycleSummary:
    """Cycle statistics derived from the sorted period start dates.

    Attributes:
        cycle_length:  Mean gap between consecutive starts, rounded half up.
        period_length: Assumed bleeding length in days.
        last_period:   Most recent start date.
        next_period:   ``last_period + cycle_length``.
        ovulation:     ``next_period - 14``.
        gaps:          Day gaps between consecutive starts, oldest first.
        count:         Number of complete cycles observed (``len(gaps)``).
        min_cycle:     Shortest observed gap.
        max_cycle:     Longest observed gap.
    """

    cycle_length: int
    period_length: int
    last_period: date
    next_period: date
    ovulation: date
    gaps: list[int]
    count: int
    min_cycle: int
    max_cycle: int


@dataclass
class FrequencyItem:
    label: str
    count: int


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _round_half_up(value: float) -> int:
    # round() uses banker's rounding; 28.5 must become 29
    return int(math.floor(value + 0.5))


def start_dates(records: Iterable[PeriodObservation]) -> list[date]:
    """Return the period start dates in ascending order."""
    return sorted(
        _as_date(r.record_date) for r in records if r.record_type == "start"
    )


def compute_cycle_summary(
    records: Iterable[PeriodObservation],
) -> CycleSummary | None:
    """Compute the cycle summary, or ``None`` when fewer than two starts exist.

    Args:
        records: All of a user's period records, in any order.

    Returns:
        CycleSummary, or None for insufficient data.  A missing summary is
        distinct from any computed one; callers render a "needs more data"
        state for it.
    """
    starts = start_dates(records)
    if len(starts) < 2:
        return None

    gaps = [(starts[i] - starts[i - 1]).days for i in range(1, len(starts))]
    cycle_length = _round_half_up(sum(gaps) / len(gaps))
    last_period = starts[-1]
    next_period = last_period + timedelta(days=cycle_length)

    return CycleSummary(
        cycle_length=cycle_length,
        period_length=DEFAULT_PERIOD_LENGTH,
        last_period=last_period,
        next_period=next_period,
        ovulation=next_period - timedelta(days=LUTEAL_PHASE_DAYS),
        gaps=gaps,
        count=len(gaps),
        min_cycle=min(gaps),
        max_cycle=max(gaps),
    )


def _ranked(counts: Counter[str]) -> list[FrequencyItem]:
    # sorted() is stable and Counter keeps first-seen order, so ties stay
    # in the order the labels first appeared
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [FrequencyItem(label=label, count=count) for label, count in ranked]


def compute_symptom_frequencies(
    records: Iterable[PeriodObservation], limit: int = TOP_SYMPTOMS
) -> list[FrequencyItem]:
    """Most frequent symptom labels across symptom records, top ``limit``.

    A record's symptoms are a set: each label counts at most once per
    record, and blank labels are ignored.
    """
    counts: Counter[str] = Counter()
    for record in records:
        if record.record_type != "symptom":
            continue
        for symptom in dict.fromkeys(record.symptoms or []):
            if symptom.strip():
                counts[symptom] += 1
    return _ranked(counts)[:limit]


def compute_mood_frequencies(
    records: Iterable[PeriodObservation],
) -> list[FrequencyItem]:
    """Mood label counts across mood records, most frequent first."""
    counts: Counter[str] = Counter(
        r.mood for r in records if r.record_type == "mood" and r.mood
    )
    return _ranked(counts)


def classify_calendar_day(
    day: date,
    records: Iterable[PeriodObservation],
    summary: CycleSummary | None,
    today: date,
) -> str:
    """Map one calendar day to its display category.

    Precedence: today > logged period start > predicted next start >
    estimated ovulation > none.
    """
    if day == today:
        return DAY_TODAY
    if any(
        r.record_type == "start" and _as_date(r.record_date) == day
        for r in records
    ):
        return DAY_PERIOD
    if summary is not None:
        if day == summary.next_period:
            return DAY_PREDICTED_NEXT
        if day == summary.ovulation:
            return DAY_FERTILE
    return DAY_NONE


def build_calendar_month(
    year: int,
    month: int,
    records: Iterable[PeriodObservation],
    summary: CycleSummary | None,
    today: date,
) -> list[tuple[date, str]]:
    """Classify every day of one month, first day first."""
    records = list(records)
    _, days_in_month = calendar.monthrange(year, month)
    days = []
    for day_number in range(1, days_in_month + 1):
        day = date(year, month, day_number)
        days.append((day, classify_calendar_day(day, records, summary, today)))
    logger.debug("Built calendar %04d-%02d from %d records", year, month, len(records))
    return days
