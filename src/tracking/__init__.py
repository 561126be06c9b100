"""Journal analytics for Haru.

Pure, synchronous logic with no I/O.  Routers fetch records from storage
and hand the snapshot to these modules.

Modules:
    cycle_stats       — Cycle summary, symptom/mood frequencies, calendar coloring
    emotion_keywords  — Live keyword-based emotion scoring for diary drafts
    journal_stats     — Diary counts, monthly activity and writing streak
"""

from src.tracking.cycle_stats import (
    CycleSummary,
    FrequencyItem,
    PeriodObservation,
    build_calendar_month,
    classify_calendar_day,
    compute_cycle_summary,
    compute_mood_frequencies,
    compute_symptom_frequencies,
)
from src.tracking.emotion_keywords import EmotionSample, EmotionScore, EmotionTracker, score_text
from src.tracking.journal_stats import JournalStatsResult, compute_journal_stats

__all__ = [
    "CycleSummary",
    "FrequencyItem",
    "PeriodObservation",
    "build_calendar_month",
    "classify_calendar_day",
    "compute_cycle_summary",
    "compute_mood_frequencies",
    "compute_symptom_frequencies",
    "EmotionSample",
    "EmotionScore",
    "EmotionTracker",
    "score_text",
    "JournalStatsResult",
    "compute_journal_stats",
]
