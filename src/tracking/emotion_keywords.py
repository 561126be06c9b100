"""Live emotion scoring for diary drafts.

While a user types, the draft is matched against a fixed Korean keyword
lexicon to give immediate feedback on the dominant emotion.  This is a
presentation heuristic: results are never persisted and the AI analysis
pipeline does not use them.

Usage::

    tracker = EmotionTracker()
    tracker.update("오늘 정말 행복하고 기뻤다", timestamp=now)
    tracker.current_dominant()   # "happy"
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime

# Category order doubles as the tie-break order
EMOTION_KEYWORDS: dict[str, tuple[str, ...]] = {
    "happy": ("행복", "기뻐", "기쁘", "기쁨", "좋아", "좋았", "신나", "웃", "즐거", "감사", "사랑"),
    "sad": ("슬프", "슬퍼", "슬픔", "우울", "눈물", "울었", "외로", "그리워", "서운", "속상"),
    "angry": ("화나", "화가", "짜증", "분노", "열받", "억울", "싫어", "미워", "답답"),
    "peaceful": ("평온", "편안", "차분", "여유", "고요", "느긋", "안정", "쉬었", "힐링"),
    "excited": ("설레", "기대", "두근", "흥분", "떨려", "짜릿", "신기"),
}

EMOTION_ORDER: tuple[str, ...] = tuple(EMOTION_KEYWORDS)

MIN_CONTENT_LENGTH = 5
HISTORY_SIZE = 20
RECENT_WINDOW = 5


@dataclass(frozen=True)
class EmotionSample:
    timestamp: datetime
    emotion: str
    intensity: int


@dataclass(frozen=True)
class EmotionScore:
    """Keyword hit counts for one piece of text.

    Attributes:
        intensities: emotion → number of keyword occurrences, in category order.
        dominant:    Highest-intensity emotion, or None when nothing matched.
        intensity:   Intensity of the dominant emotion (0 when none).
    """

    intensities: dict[str, int]
    dominant: str | None
    intensity: int


def count_occurrences(text: str, keyword: str) -> int:
    """Count occurrences of ``keyword`` in ``text``, overlaps included."""
    count = 0
    start = text.find(keyword)
    while start != -1:
        count += 1
        start = text.find(keyword, start + 1)
    return count


def score_text(text: str) -> EmotionScore:
    """Score ``text`` against every emotion category."""
    intensities = {
        emotion: sum(count_occurrences(text, kw) for kw in keywords)
        for emotion, keywords in EMOTION_KEYWORDS.items()
    }
    dominant: str | None = None
    best = 0
    for emotion in EMOTION_ORDER:
        # strict > keeps the earlier category on ties
        if intensities[emotion] > best:
            dominant, best = emotion, intensities[emotion]
    return EmotionScore(intensities=intensities, dominant=dominant, intensity=best)


class EmotionTracker:
    """Bounded history of live emotion samples for one editing session."""

    def __init__(
        self,
        history_size: int = HISTORY_SIZE,
        window: int = RECENT_WINDOW,
        min_length: int = MIN_CONTENT_LENGTH,
    ) -> None:
        self._history: deque[EmotionSample] = deque(maxlen=history_size)
        self._window = window
        self._min_length = min_length

    @property
    def history(self) -> list[EmotionSample]:
        return list(self._history)

    def update(self, text: str, timestamp: datetime) -> EmotionSample | None:
        """Score a new draft and record it.

        Returns the recorded sample, or None when the draft is too short or
        contains no known keyword (nothing is recorded in that case).
        """
        if len(text.strip()) < self._min_length:
            return None
        score = score_text(text)
        if score.dominant is None:
            return None
        sample = EmotionSample(
            timestamp=timestamp, emotion=score.dominant, intensity=score.intensity
        )
        self._history.append(sample)
        return sample

    def current_dominant(self) -> str | None:
        """Emotion with the largest summed intensity over the recent window."""
        recent = list(self._history)[-self._window:]
        totals: dict[str, int] = {}
        for sample in recent:
            totals[sample.emotion] = totals.get(sample.emotion, 0) + sample.intensity
        if not totals:
            return None
        # max() returns the first maximal key, i.e. the first seen in the window
        return max(totals, key=lambda emotion: totals[emotion])

    def clear(self) -> None:
        self._history.clear()
