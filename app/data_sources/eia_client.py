"""Helpers for fetching monthly retail electricity prices from the EIA v2 API."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

import requests

from app.data_sources.base import get_json, require_credential
from app.domain import EnergyMetric, EnergyTrend
from app.errors import PayloadShapeError
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="data_sources/eia")

session = requests.Session()

EIA_RETAIL_SALES_URL = "https://api.eia.gov/v2/electricity/retail-sales/data/"
SOURCE_NAME = "energy"

# Month-over-month moves within this band (percent) count as stable.
TREND_THRESHOLD_PERCENT = 2.0
PERIOD_LIMIT = 3


def _coerce_price(raw: Any) -> Optional[float]:
    """EIA returns prices as numbers or numeric strings; anything else is None."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value:  # NaN
        return None
    return value


def _rows(data: Any) -> List[dict]:
    """Return the data rows from an EIA v2 response body."""
    if not isinstance(data, dict):
        raise PayloadShapeError(SOURCE_NAME, "response is not an object")
    response = data.get("response")
    rows = response.get("data") if isinstance(response, dict) else None
    if not isinstance(rows, list) or not rows:
        raise PayloadShapeError(SOURCE_NAME, "no electricity pricing data in response")
    return rows


def price_points(rows: List[dict]) -> List[Tuple[str, float]]:
    """Return (period, price) pairs with numeric prices, most recent period first."""
    points: List[Tuple[str, float]] = []
    for row in rows:
        if not isinstance(row, dict) or not isinstance(row.get("period"), str):
            continue
        price = _coerce_price(row.get("price", row.get("value")))
        if price is None:
            continue
        points.append((row["period"], price))
    points.sort(key=lambda pair: pair[0], reverse=True)
    return points


def energy_trend(latest: float, previous: Optional[float]) -> EnergyTrend:
    """Bucket the percent change into up/down/stable around the ±2% band."""
    if previous is None or previous <= 0:
        return EnergyTrend.STABLE
    percent_change = (latest - previous) / previous * 100
    if percent_change > TREND_THRESHOLD_PERCENT:
        return EnergyTrend.UP
    if percent_change < -TREND_THRESHOLD_PERCENT:
        return EnergyTrend.DOWN
    return EnergyTrend.STABLE


def parse_energy_payload(data: Any) -> EnergyMetric:
    """Turn an EIA retail-sales payload into an EnergyMetric."""
    points = price_points(_rows(data))
    if not points:
        raise PayloadShapeError(SOURCE_NAME, "no valid pricing data points")
    latest = points[0][1]
    if latest <= 0:
        raise PayloadShapeError(SOURCE_NAME, f"invalid electricity price {latest!r}")
    previous = points[1][1] if len(points) >= 2 else None
    return EnergyMetric(cents_per_kwh=round(latest, 2), trend=energy_trend(latest, previous))


def fetch_energy_price(api_key: str | None,
                       *,
                       state_id: str = "TX",
                       sector_id: str = "RES",
                       timeout: float = 10,
                       ) -> EnergyMetric:
    """Fetch the latest monthly retail price for one state and sector."""
    key = require_credential(api_key, "EIA_API_KEY")
    params = {
        "api_key": key,
        "frequency": "monthly",
        "data[0]": "price",
        "facets[stateid][]": state_id,
        "facets[sectorid][]": sector_id,
        "sort[0][column]": "period",
        "sort[0][direction]": "desc",
        "offset": 0,
        "length": PERIOD_LIMIT,
    }
    logger.debug(
        "Requesting EIA retail prices",
        extra={"url": mask_url(EIA_RETAIL_SALES_URL), "state_id": state_id, "sector_id": sector_id},
    )
    data = get_json(session, SOURCE_NAME, EIA_RETAIL_SALES_URL, params=params, timeout=timeout)
    return parse_energy_payload(data)
