"""Prompt construction and reply parsing for AI-generated operational insights."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from app.domain import InsightInput, InsightMetric

SUMMARY_MAX_CHARS = 200
RECOMMENDATION_MAX_CHARS = 300

SYSTEM_PROMPT = (
    "You are an operations advisor for manufacturing facilities. Analyze the provided operational data and "
    "respond with a JSON object containing exactly two keys: 'summary' and 'recommendation'. "
    "Keep responses concise and actionable."
)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class ParseStatus(str, Enum):
    """Outcome of turning a model reply into an insight."""
    OK = "ok"
    PARSE_ERROR = "parse_error"
    SHAPE_ERROR = "shape_error"


@dataclass(frozen=True)
class InsightParseResult:
    """Parsed insight on success, otherwise the failure kind and a short reason."""
    status: ParseStatus
    insight: Optional[InsightMetric] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is ParseStatus.OK


def build_insight_messages(metrics: InsightInput, *, location: str = "El Paso, TX") -> tuple[str, list[dict]]:
    """Return the system prompt and the single user message describing the current metrics."""
    production, energy, weather = metrics.production, metrics.energy, metrics.weather
    user_msg = "\n".join([
        f"Analyze this manufacturing operations data for {location}:",
        "",
        f"Production Index: {production.index} ({production.trend})",
        f"Energy Cost: {energy.cents_per_kwh}¢/kWh (trend: {energy.trend.value})",
        f"Weather: {weather.temp}°F (alert: {weather.alert})",
        "",
        "Respond with JSON format:",
        "{",
        '  "summary": "Brief analysis of current conditions (max 25 words)",',
        '  "recommendation": "Specific actionable advice for operations (max 35 words)"',
        "}",
        "",
        "Focus on cost optimization, production efficiency, and weather-related operational adjustments.",
    ])
    return SYSTEM_PROMPT, [{"role": "user", "content": user_msg}]


def _strip_markdown_fences(text: str) -> str:
    """Remove surrounding Markdown code fences from text."""
    if not text:
        return text
    t = text.strip()
    if not t.startswith("```"):
        return t
    lines = t.splitlines()
    if lines and lines[0].strip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_insight_reply(raw_text: str | None) -> InsightParseResult:
    """
    Locate a JSON object in the model reply and validate it as an insight.

    The first "{" through the last "}" is tried; when the reply has no braces
    at all the whole text is tried instead. Both fields must be strings. They
    are trimmed and cut to their length limits rather than rejected for being
    long, since the model treats the word limits in the prompt as soft.
    """
    text = _strip_markdown_fences(raw_text or "")
    if not text:
        return InsightParseResult(ParseStatus.PARSE_ERROR, error="empty reply")

    match = _JSON_OBJECT_RE.search(text)
    candidate = match.group(0) if match else text
    try:
        parsed: Any = json.loads(candidate)
    except ValueError as exc:
        return InsightParseResult(ParseStatus.PARSE_ERROR, error=f"invalid JSON: {exc}")

    if not isinstance(parsed, dict):
        return InsightParseResult(ParseStatus.SHAPE_ERROR, error="reply is not a JSON object")
    summary = parsed.get("summary")
    recommendation = parsed.get("recommendation")
    if not isinstance(summary, str) or not isinstance(recommendation, str):
        return InsightParseResult(ParseStatus.SHAPE_ERROR, error="'summary' and 'recommendation' must be strings")

    summary = summary.strip()[:SUMMARY_MAX_CHARS]
    recommendation = recommendation.strip()[:RECOMMENDATION_MAX_CHARS]
    if not summary or not recommendation:
        return InsightParseResult(ParseStatus.SHAPE_ERROR, error="empty 'summary' or 'recommendation'")
    return InsightParseResult(ParseStatus.OK, insight=InsightMetric(summary=summary, recommendation=recommendation))
