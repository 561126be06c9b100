"""Diary writing statistics: counts, monthly activity, and writing streak."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable


@dataclass
class JournalStatsResult:
    diary_count: int
    memoir_count: int
    current_streak: int
    entries_this_month: int
    emotion_counts: dict[str, int] = field(default_factory=dict)


def writing_streak(entry_dates: Iterable[date], today: date) -> int:
    """Consecutive days with at least one diary entry, ending today.

    A streak that ended yesterday still counts (today may not be written
    yet); a gap of a full day breaks it.
    """
    written = set(entry_dates)
    day = today if today in written else today - timedelta(days=1)
    streak = 0
    while day in written:
        streak += 1
        day -= timedelta(days=1)
    return streak


def compute_journal_stats(
    entries: Iterable[tuple[date, str]],
    memoir_count: int,
    today: date,
) -> JournalStatsResult:
    """Summarize diary activity.

    Args:
        entries:      ``(entry_date, emotion)`` for each of the user's diary entries.
        memoir_count: Number of memoir entries.
        today:        Reference date for the streak and the current month.
    """
    entries = list(entries)
    dates = [d for d, _ in entries]
    emotions: Counter[str] = Counter(emotion for _, emotion in entries)
    return JournalStatsResult(
        diary_count=len(entries),
        memoir_count=memoir_count,
        current_streak=writing_streak(dates, today),
        entries_this_month=sum(
            1 for d in dates if d.year == today.year and d.month == today.month
        ),
        emotion_counts=dict(emotions.most_common()),
    )
