"""Helpers for fetching the industrial production index from the FRED API."""
from __future__ import annotations

import datetime as dt
from typing import Any, List, Optional, Tuple

import requests

from app.data_sources.base import get_json, require_credential
from app.domain import ProductionMetric
from app.errors import PayloadShapeError
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="data_sources/fred")

session = requests.Session()

FRED_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"
SOURCE_NAME = "production"

# FRED reports a missing observation as "." instead of omitting it.
MISSING_VALUE = "."
LOOKBACK_DAYS = 90
OBSERVATION_LIMIT = 3

UP_GLYPH = "↑"
DOWN_GLYPH = "↓"
FLAT_GLYPH = "→"
NO_DATA_LABEL = f"{FLAT_GLYPH} No data"


def _parse_date(raw: Any) -> Optional[dt.date]:
    """Parse a FRED observation date, returning None when it is unusable."""
    if not isinstance(raw, str):
        return None
    try:
        return dt.date.fromisoformat(raw[:10])
    except ValueError:
        return None


def _parse_value(raw: Any) -> Optional[float]:
    """Parse a FRED observation value, treating the missing marker and garbage as None."""
    if raw is None or raw == MISSING_VALUE:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value:  # NaN
        return None
    return value


def valid_observations(observations: List[dict]) -> List[Tuple[dt.date, float]]:
    """Return (date, value) pairs with usable values, newest first."""
    out: List[Tuple[dt.date, float]] = []
    for obs in observations:
        if not isinstance(obs, dict):
            continue
        date = _parse_date(obs.get("date"))
        value = _parse_value(obs.get("value"))
        if date is None or value is None:
            continue
        out.append((date, value))
    out.sort(key=lambda pair: pair[0], reverse=True)
    return out


def production_trend_label(latest: float, previous: Optional[float]) -> str:
    """Month-over-month label, e.g. "↑ 0.4% MoM"; "→ No data" without a usable previous value."""
    if previous is None or previous == 0:
        return NO_DATA_LABEL
    percent_change = (latest - previous) / previous * 100
    if percent_change > 0:
        glyph = UP_GLYPH
    elif percent_change < 0:
        glyph = DOWN_GLYPH
    else:
        glyph = FLAT_GLYPH
    return f"{glyph} {abs(percent_change):.1f}% MoM"


def parse_production_payload(data: Any) -> ProductionMetric:
    """Turn a FRED observations payload into a ProductionMetric."""
    if not isinstance(data, dict) or not isinstance(data.get("observations"), list):
        raise PayloadShapeError(SOURCE_NAME, "missing 'observations' list")
    points = valid_observations(data["observations"])
    if not points:
        raise PayloadShapeError(SOURCE_NAME, "no valid production observations")

    latest = points[0][1]
    previous = points[1][1] if len(points) >= 2 else None
    return ProductionMetric(index=round(latest, 1), trend=production_trend_label(latest, previous))


def fetch_production_index(api_key: str | None,
                           *,
                           series_id: str = "INDPRO",
                           timeout: float = 10,
                           today: Optional[dt.date] = None,
                           ) -> ProductionMetric:
    """Fetch the latest observations for `series_id` and compute the MoM trend."""
    key = require_credential(api_key, "FRED_API_KEY")
    today = today or dt.date.today()
    params = {
        "series_id": series_id,
        "api_key": key,
        "file_type": "json",
        "limit": OBSERVATION_LIMIT,
        "sort_order": "desc",
        "observation_start": (today - dt.timedelta(days=LOOKBACK_DAYS)).isoformat(),
    }
    logger.debug("Requesting FRED observations", extra={"url": mask_url(FRED_OBSERVATIONS_URL), "series_id": series_id})
    data = get_json(session, SOURCE_NAME, FRED_OBSERVATIONS_URL, params=params, timeout=timeout)
    return parse_production_payload(data)
