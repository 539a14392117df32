"""Factory helpers for wiring the upstream sources at startup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any, Callable, Dict

from app import config
from app.cache import TTLCache
from app.data_sources.base import SourceFetcher, utcnow
from app.data_sources.eia_client import fetch_energy_price
from app.data_sources.fred_client import fetch_production_index
from app.data_sources.openweather_client import fetch_current_weather
from app.domain import (
    ENERGY_FALLBACK,
    PRODUCTION_FALLBACK,
    WEATHER_FALLBACK,
    EnergyMetric,
    ProductionMetric,
    WeatherMetric,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")

PRODUCTION_CACHE_KEY = "fred_production_index"
ENERGY_CACHE_KEY = "eia_electricity_price"
WEATHER_CACHE_KEY = "local_weather"


@dataclass
class DashboardSources:
    """The three metric fetchers the dashboard polls on every request."""

    production: SourceFetcher[ProductionMetric]
    energy: SourceFetcher[EnergyMetric]
    weather: SourceFetcher[WeatherMetric]

    def all(self) -> Dict[str, SourceFetcher[Any]]:
        """Fetchers keyed by source name, in display order."""
        return {"production": self.production, "energy": self.energy, "weather": self.weather}


def build_sources(
    settings: config.Settings | None = None,
    cache: TTLCache | None = None,
    now: Callable[[], datetime] = utcnow,
) -> DashboardSources:
    """Instantiate the live FRED, EIA and OpenWeatherMap fetchers over one shared cache."""
    settings = settings or config.settings
    cache = cache if cache is not None else TTLCache(name="sources")
    timeout = settings.source_timeout_seconds

    logger.info(
        "Building dashboard sources",
        extra={
            "series_id": settings.fred_series_id,
            "eia_state": settings.eia_state_id,
            "location": settings.location_name,
        },
    )
    return DashboardSources(
        production=SourceFetcher(
            name="production",
            cache_key=PRODUCTION_CACHE_KEY,
            ttl_seconds=settings.production_ttl_seconds,
            fetch=partial(fetch_production_index, settings.fred_api_key,
                          series_id=settings.fred_series_id, timeout=timeout),
            fallback=PRODUCTION_FALLBACK,
            cache=cache,
            now=now,
        ),
        energy=SourceFetcher(
            name="energy",
            cache_key=ENERGY_CACHE_KEY,
            ttl_seconds=settings.energy_ttl_seconds,
            fetch=partial(fetch_energy_price, settings.eia_api_key,
                          state_id=settings.eia_state_id, sector_id=settings.eia_sector_id, timeout=timeout),
            fallback=ENERGY_FALLBACK,
            cache=cache,
            now=now,
        ),
        weather=SourceFetcher(
            name="weather",
            cache_key=WEATHER_CACHE_KEY,
            ttl_seconds=settings.weather_ttl_seconds,
            fetch=partial(fetch_current_weather, settings.weather_api_key,
                          settings.weather_latitude, settings.weather_longitude, timeout=timeout),
            fallback=WEATHER_FALLBACK,
            cache=cache,
            now=now,
        ),
    )
