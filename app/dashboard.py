"""Aggregation of the three sources and the insight into one dashboard snapshot."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict

from app.app_types import CachedMetric
from app.config import Settings, settings as default_settings
from app.data_sources.base import utcnow
from app.data_sources.factory import DashboardSources, build_sources
from app.domain import (
    ENERGY_FALLBACK,
    PRODUCTION_FALLBACK,
    WEATHER_FALLBACK,
    DashboardData,
    DashboardSnapshot,
    fallback_data,
)
from app.fingerprint import data_fingerprint
from app.insight_generator import InsightGenerator
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/dashboard")

_SOURCE_FALLBACKS = {
    "production": PRODUCTION_FALLBACK,
    "energy": ENERGY_FALLBACK,
    "weather": WEATHER_FALLBACK,
}


def fallback_snapshot(now: datetime) -> DashboardSnapshot:
    """Snapshot made only of fixed literals, served when the handler itself fails."""
    return DashboardSnapshot(data=fallback_data(), last_fetched=now, last_insight_run=None)


class DashboardService:
    """Per-process dashboard state: source caches, insight cache and a fetch pool."""

    def __init__(
        self,
        sources: DashboardSources | None = None,
        insights: InsightGenerator | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] = utcnow,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        settings = settings or default_settings
        self._now = now
        self.sources = sources or build_sources(settings, now=now)
        self.insights = insights or InsightGenerator(settings=settings, now=now)
        self._executor = executor or ThreadPoolExecutor(max_workers=3, thread_name_prefix="dashboard-fetch")

    def _fetch_all(self) -> Dict[str, CachedMetric[Any]]:
        """Run every source concurrently and collect each outcome; one failure never affects the others."""
        futures: Dict[str, Future] = {
            name: self._executor.submit(fetcher.get) for name, fetcher in self.sources.all().items()
        }
        results: Dict[str, CachedMetric[Any]] = {}
        for name, future in futures.items():
            try:
                results[name] = future.result()
            except Exception as exc:
                logger.exception("Source %s raised despite its fallback guard: %s", name, exc)
                results[name] = CachedMetric(data=_SOURCE_FALLBACKS[name], fetched_at=None)
        return results

    def _build(self, refresh: bool) -> DashboardSnapshot:
        results = self._fetch_all()
        production = results["production"].data
        energy = results["energy"].data
        weather = results["weather"].data

        fingerprint = data_fingerprint(production, energy, weather)
        insight = self.insights.generate(production, energy, weather, force=refresh, fingerprint=fingerprint)

        fetched = [r.fetched_at for r in results.values() if r.fetched_at is not None]
        last_fetched = max(fetched) if fetched else self._now()
        if not fetched:
            logger.warning("All sources served fallback values")

        return DashboardSnapshot(
            data=DashboardData(production=production, energy=energy, weather=weather, insight=insight.data),
            last_fetched=last_fetched,
            last_insight_run=insight.generated_at,
        )

    def snapshot(self, refresh: bool = False) -> DashboardSnapshot:
        """Return a complete snapshot; any unexpected failure yields the fixed fallback snapshot."""
        try:
            return self._build(refresh)
        except Exception as exc:
            logger.exception("Dashboard aggregation failed; serving fallback snapshot: %s", exc)
            return fallback_snapshot(self._now())

    def cache_status(self) -> Dict[str, Any]:
        """Per-source cache state and insight cache statistics."""
        return {
            "sources": {name: fetcher.cache_status() for name, fetcher in self.sources.all().items()},
            "insights": self.insights.stats(),
        }

    def clear_caches(self) -> None:
        """Drop every cached source value and insight."""
        for fetcher in self.sources.all().values():
            fetcher.clear()
        self.insights.clear()
        logger.info("Cleared dashboard caches")

    def shutdown(self) -> None:
        """Stop the fetch pool."""
        self._executor.shutdown(wait=False)
