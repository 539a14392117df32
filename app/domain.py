"""Domain vocabulary and wire schemas for the operations dashboard.

These models are the stable contract between the upstream clients, the
insight generator and the HTTP layer. Field names are snake_case in Python and
camelCase on the wire (``centsPerKwh``, ``lastFetched``, ``lastInsightRun``).
The fixed fallback literals served when a source is unavailable live here too,
next to the types they instantiate. No fetching or interpretation logic lives
here.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    """Base model: immutable, strict about unknown keys, accepts either field name or alias."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class EnergyTrend(str, Enum):
    """Direction of the month-over-month electricity price change."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class ProductionMetric(_WireModel):
    """Latest production index and a month-over-month label such as "↑ 0.4% MoM"."""
    index: float
    trend: str


class EnergyMetric(_WireModel):
    """Latest retail electricity price in cents per kWh."""
    cents_per_kwh: float = Field(alias="centsPerKwh")
    trend: EnergyTrend


class WeatherMetric(_WireModel):
    """Current temperature (°F) and the alert text, "none" when nothing is active."""
    temp: int
    alert: str


class InsightMetric(_WireModel):
    """Short operational summary plus one recommendation."""
    summary: str
    recommendation: str


class InsightInput(_WireModel):
    """Validated bundle of the three metrics handed to the insight generator."""
    production: ProductionMetric
    energy: EnergyMetric
    weather: WeatherMetric


class DashboardData(_WireModel):
    """The four metrics shown on the dashboard."""
    production: ProductionMetric
    energy: EnergyMetric
    weather: WeatherMetric
    insight: InsightMetric


class DashboardSnapshot(_WireModel):
    """Response envelope for one dashboard poll."""
    data: DashboardData
    last_fetched: datetime = Field(alias="lastFetched")
    last_insight_run: Optional[datetime] = Field(default=None, alias="lastInsightRun")


# ---------------------------------------------------------------------------
# Fixed fallback values
# ---------------------------------------------------------------------------

NO_ALERT = "none"

PRODUCTION_FALLBACK = ProductionMetric(index=102.4, trend="→ Data unavailable")
ENERGY_FALLBACK = EnergyMetric(cents_per_kwh=12.5, trend=EnergyTrend.STABLE)
WEATHER_FALLBACK = WeatherMetric(temp=75, alert="Weather data unavailable")

GENERIC_INSIGHT = InsightMetric(
    summary="Data analysis temporarily unavailable",
    recommendation="Monitor key metrics and adjust operations as needed",
)
INVALID_INPUT_INSIGHT = InsightMetric(
    summary="Invalid data provided for analysis.",
    recommendation="Please ensure all required data fields are present and valid.",
)


def fallback_data() -> DashboardData:
    """Dashboard payload made only of fixed fallback literals."""
    return DashboardData(
        production=PRODUCTION_FALLBACK,
        energy=ENERGY_FALLBACK,
        weather=WEATHER_FALLBACK,
        insight=GENERIC_INSIGHT,
    )
