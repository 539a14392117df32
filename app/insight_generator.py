"""
Insight generation with fingerprint-keyed caching and a fixed fallback chain.

The text-generation call is the expensive step of a dashboard poll, so it only
runs when the caller forces it or when no live insight exists for the current
data fingerprint. When the call fails the generator degrades, in order, to:

1. the insight cached for this fingerprint, even if it has expired,
2. the most recently generated insight for any fingerprint,
3. a rule-based insight derived from the metrics themselves.

`generate()` never raises.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from app.anthropic_client import AnthropicClient
from app.app_types import CachedInsight
from app.cache import CacheEntry, TTLCache
from app.config import Settings, settings as default_settings
from app.data_sources.base import utcnow
from app.domain import (
    GENERIC_INSIGHT,
    INVALID_INPUT_INSIGHT,
    NO_ALERT,
    WEATHER_FALLBACK,
    EnergyTrend,
    InsightInput,
    InsightMetric,
)
from app.errors import DashboardError, InsightParseError
from app.fingerprint import data_fingerprint
from app.insight_prompt import build_insight_messages, parse_insight_reply
from utils.logging_utils import get_tagged_logger, mask_secrets

logger = get_tagged_logger(__name__, tag="app/insight_generator")

EXTREME_HEAT_F = 100

EXTREME_HEAT_INSIGHT = InsightMetric(
    summary="Extreme heat conditions detected",
    recommendation="Consider shifting operations to cooler hours to reduce energy costs",
)
ENERGY_UP_INSIGHT = InsightMetric(
    summary="Energy costs trending upward",
    recommendation="Optimize energy usage and consider off-peak scheduling",
)
WEATHER_ALERT_INSIGHT = InsightMetric(
    summary="Weather alert active",
    recommendation="Monitor weather conditions and prepare contingency plans",
)
PRODUCTION_DOWN_INSIGHT = InsightMetric(
    summary="Production index declining",
    recommendation="Review production processes and identify improvement opportunities",
)
PRODUCTION_UP_INSIGHT = InsightMetric(
    summary="Production performing well",
    recommendation="Maintain current efficiency while monitoring energy costs",
)

# Alert values that do not describe an active weather event.
_INACTIVE_ALERTS = frozenset({NO_ALERT, WEATHER_FALLBACK.alert})


def has_active_alert(alert: str) -> bool:
    """True when the weather alert text describes an actual event."""
    return alert.strip() not in _INACTIVE_ALERTS


def rule_based_insight(metrics: InsightInput) -> InsightMetric:
    """Deterministic insight chosen by the first matching rule, most urgent first."""
    if metrics.weather.temp >= EXTREME_HEAT_F:
        return EXTREME_HEAT_INSIGHT
    if metrics.energy.trend is EnergyTrend.UP:
        return ENERGY_UP_INSIGHT
    if has_active_alert(metrics.weather.alert):
        return WEATHER_ALERT_INSIGHT
    if "↓" in metrics.production.trend:
        return PRODUCTION_DOWN_INSIGHT
    if "↑" in metrics.production.trend:
        return PRODUCTION_UP_INSIGHT
    return GENERIC_INSIGHT


class InsightGenerator:
    """Produces the dashboard insight, calling the model only when the data changed."""

    def __init__(
        self,
        client: AnthropicClient | None = None,
        cache: TTLCache | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        settings = settings or default_settings
        self.client = client or AnthropicClient(settings)
        self.ttl_seconds = settings.insight_ttl_seconds
        self.cache = cache if cache is not None else TTLCache(default_ttl_seconds=self.ttl_seconds, name="insights")
        self.location = settings.location_name
        self._now = now
        self._latest: Optional[CachedInsight] = None

    @property
    def latest(self) -> Optional[CachedInsight]:
        """Most recently generated insight, regardless of fingerprint."""
        return self._latest

    def generate(self, production: Any, energy: Any, weather: Any, *, force: bool = False,
                 fingerprint: str | None = None) -> CachedInsight:
        """Return the insight for the given metrics; never raises."""
        try:
            metrics = InsightInput(production=production, energy=energy, weather=weather)
        except ValidationError as exc:
            logger.error("Invalid input provided to insight generator", extra={"errors": exc.error_count()})
            return CachedInsight(data=INVALID_INPUT_INSIGHT, generated_at=None, source="invalid_input")

        fp = fingerprint or data_fingerprint(metrics.production, metrics.energy, metrics.weather)
        previous: Optional[CacheEntry[CachedInsight]] = self.cache.peek(fp)
        fresh = self.cache.get(fp)
        if fresh is not None and not force:
            logger.debug("Serving cached insight", extra={"fingerprint": fp})
            return replace(fresh, source="cache")

        if force:
            reason = "manual_refresh"
        elif previous is not None:
            reason = "expired"
        else:
            reason = "new_fingerprint"
        logger.info("Generating new insight", extra={"fingerprint": fp, "reason": reason})

        try:
            insight = self._call_model(metrics)
        except DashboardError as exc:
            logger.warning("Insight generation failed", extra={"fingerprint": fp, "error": mask_secrets(str(exc))})
            return self._fallback(metrics, fp, previous)
        except Exception as exc:
            logger.exception("Unexpected error generating insight: %s", mask_secrets(str(exc)))
            return self._fallback(metrics, fp, previous)

        produced = CachedInsight(data=insight, generated_at=self._now(), fingerprint=fp, source="ai")
        self.cache.set(fp, produced, self.ttl_seconds)
        self._latest = produced
        return produced

    def _call_model(self, metrics: InsightInput) -> InsightMetric:
        """Ask the model for an insight; raises on any failure, including a malformed reply."""
        system, messages = build_insight_messages(metrics, location=self.location)
        raw = self.client.complete(system, messages)
        result = parse_insight_reply(raw)
        if not result.ok:
            raise InsightParseError(result.status.value, result.error or "unusable reply")
        return result.insight

    def _fallback(self, metrics: InsightInput, fingerprint: str,
                  previous: Optional[CacheEntry[CachedInsight]]) -> CachedInsight:
        """Walk the fallback chain: same-fingerprint cache, latest insight, rule table."""
        if previous is not None:
            logger.warning("Serving stale insight for unchanged data", extra={"fingerprint": fingerprint})
            return replace(previous.value, source="stale_cache")
        if self._latest is not None:
            logger.warning("Serving most recent insight for different data", extra={"fingerprint": fingerprint})
            return replace(self._latest, source="latest")
        logger.warning("Serving rule-based insight", extra={"fingerprint": fingerprint})
        return CachedInsight(data=rule_based_insight(metrics), generated_at=None, fingerprint=fingerprint,
                             source="rules")

    def stats(self) -> Dict[str, Any]:
        """Cache statistics for the status endpoint."""
        return {
            "total_cached": len(self.cache),
            "has_latest": self._latest is not None,
            "ttl_seconds": self.ttl_seconds,
        }

    def clear(self) -> None:
        """Forget every cached insight, including the most recent one."""
        self.cache.clear()
        self._latest = None
