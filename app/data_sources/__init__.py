"""Upstream data sources and the factory that wires them together."""

from .base import MetricFetcher, SourceFetcher
from .factory import DashboardSources, build_sources
from .eia_client import fetch_energy_price
from .fred_client import fetch_production_index
from .openweather_client import fetch_current_weather

__all__ = [
    "build_sources",
    "DashboardSources",
    "MetricFetcher",
    "SourceFetcher",
    "fetch_energy_price",
    "fetch_production_index",
    "fetch_current_weather",
]
