"""Content fingerprint over the three source metrics.

Values are coarsened before hashing so that noise below the display precision
does not count as a change: index to 0.1, price to 0.01 cents, temperature to
the nearest 5 °F. Trend and alert strings are used verbatim. Equal
fingerprints mean "no meaningful change" for insight regeneration.
"""

from __future__ import annotations

import hashlib
import json
import math
from typing import Any, Dict

from app.domain import EnergyMetric, ProductionMetric, WeatherMetric


def round_half_up(value: float, step: float) -> float:
    """Round `value` to a multiple of `step`, with halves going up."""
    units = math.floor(value / step + 0.5)
    # Re-derive through the step's decimal precision to avoid 102.30000000000001.
    decimals = max(0, -int(math.floor(math.log10(step)))) if step < 1 else 0
    return round(units * step, decimals)


def normalize_metrics(production: ProductionMetric, energy: EnergyMetric, weather: WeatherMetric) -> Dict[str, Any]:
    """Projection of the metrics that the fingerprint is computed over."""
    return {
        "production": {
            "index": round_half_up(production.index, 0.1),
            "trend": production.trend,
        },
        "energy": {
            "centsPerKwh": round_half_up(energy.cents_per_kwh, 0.01),
            "trend": energy.trend.value,
        },
        "weather": {
            "temp": int(round_half_up(weather.temp, 5)),
            "alert": weather.alert,
        },
    }


def data_fingerprint(production: ProductionMetric, energy: EnergyMetric, weather: WeatherMetric) -> str:
    """MD5 hex digest of the key-sorted JSON of the normalized metrics."""
    canonical = json.dumps(
        normalize_metrics(production, energy, weather),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.md5(canonical.encode("utf-8"), usedforsecurity=False).hexdigest()
