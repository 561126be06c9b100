"""AI analysis of diary entries via the Anthropic Messages API.

The model reads one diary entry plus the emotion the writer picked and
returns a JSON object with emotions, a sentiment score, themes, keywords,
a short suggestion and a one-line summary.  Missing or out-of-range fields
are replaced with safe defaults; anything that prevents getting a JSON
object at all raises ``AnalysisError``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any

import anthropic

from src.config import Settings

logger = logging.getLogger("haru.ai_analysis")

_SYSTEM_PROMPT = (
    "당신은 일기 분석 전문가입니다. 사용자의 감정을 이해하고 따뜻하게 공감하며 "
    "건설적인 피드백을 제공합니다. 반드시 JSON 객체 하나로만 응답하세요."
)

_ANALYSIS_PROMPT = """\
다음 일기를 한국어로 분석해주세요.

일기 내용: "{content}"
작성자가 선택한 감정: "{emotion}"

아래 형식의 JSON으로만 답해주세요:
{{
  "primary_emotion": "주요 감정",
  "secondary_emotions": ["보조 감정들"],
  "confidence": 0.85,
  "sentiment_score": 75,
  "themes": ["주요 주제들"],
  "keywords": ["핵심 키워드들"],
  "suggestions": "작성자를 위한 따뜻하고 건설적인 제안 (2-3문장)",
  "summary": "일기 내용을 한 문장으로 요약"
}}

기준:
- confidence: 0과 1 사이
- sentiment_score: -100(매우 부정적) ~ 100(매우 긍정적)
- themes: 최대 5개
- keywords: 최대 8개
"""

MAX_THEMES = 5
MAX_KEYWORDS = 8
MAX_CONTENT_CHARS = 8000

DEFAULT_PRIMARY_EMOTION = "알 수 없음"
DEFAULT_SUGGESTIONS = "오늘도 소중한 일기를 써주셔서 감사합니다."
DEFAULT_SUMMARY = "오늘의 일기"


class AnalysisError(Exception):
    """The AI service failed or returned something unusable."""


@dataclass
class DiaryAnalysisResult:
    primary_emotion: str
    confidence: float
    sentiment_score: int
    suggestions: str
    summary: str
    secondary_emotions: list[str] = field(default_factory=list)
    themes: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _str_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [str(v).strip() for v in value if str(v).strip()]
    return items[:limit] if limit is not None else items


def _number(value: Any) -> float | None:
    # bool is an int subclass; true/false is not a score
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_analysis(raw: dict[str, Any]) -> DiaryAnalysisResult:
    """Normalize a decoded model response, filling defaults and clamping ranges."""
    confidence = _number(raw.get("confidence"))
    sentiment = _number(raw.get("sentiment_score"))
    return DiaryAnalysisResult(
        primary_emotion=str(raw.get("primary_emotion") or DEFAULT_PRIMARY_EMOTION).strip(),
        secondary_emotions=_str_list(raw.get("secondary_emotions")),
        confidence=0.5 if confidence is None else min(max(confidence, 0.0), 1.0),
        sentiment_score=0 if sentiment is None else int(round(min(max(sentiment, -100), 100))),
        themes=_str_list(raw.get("themes"), MAX_THEMES),
        keywords=_str_list(raw.get("keywords"), MAX_KEYWORDS),
        suggestions=str(raw.get("suggestions") or DEFAULT_SUGGESTIONS).strip(),
        summary=str(raw.get("summary") or DEFAULT_SUMMARY).strip(),
    )


def extract_json_object(text: str) -> dict[str, Any]:
    """Decode the JSON object in ``text``, tolerating surrounding prose or fences."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", text, re.DOTALL)
        if not match:
            raise AnalysisError("AI response did not contain JSON")
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as exc:
            raise AnalysisError("AI returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise AnalysisError("AI response was not a JSON object")
    return data


class DiaryAnalyzer:
    """Analyze diary entries with Claude.

    Usage::

        analyzer = DiaryAnalyzer(settings)
        result = await analyzer.analyze("오늘은 ...", "happy")
    """

    def __init__(
        self,
        settings: Settings,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._model = settings.anthropic_model
        self._max_tokens = settings.analysis_max_tokens
        self._temperature = settings.analysis_temperature
        self._client = client
        if self._client is None and settings.anthropic_api_key:
            self._client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        if self._client is None:
            logger.warning("ANTHROPIC_API_KEY not set, diary analysis disabled")

    async def analyze(self, content: str, emotion: str) -> DiaryAnalysisResult:
        if self._client is None:
            raise AnalysisError("AI analysis is not configured")
        prompt = _ANALYSIS_PROMPT.format(
            content=content[:MAX_CONTENT_CHARS], emotion=emotion
        )
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                system=_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.AnthropicError as exc:
            logger.error("Diary analysis request failed: %s", exc)
            raise AnalysisError("AI analysis request failed") from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()
        if not text:
            raise AnalysisError("AI returned an empty response")

        result = parse_analysis(extract_json_object(text))
        logger.info(
            "Diary analyzed: primary=%s sentiment=%d",
            result.primary_emotion,
            result.sentiment_score,
        )
        return result

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
