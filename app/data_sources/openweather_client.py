"""Helpers for fetching current conditions from the OpenWeatherMap API."""
from __future__ import annotations

import math
from typing import Any, Optional

import requests

from app.data_sources.base import get_json, require_credential
from app.domain import NO_ALERT, WeatherMetric
from app.errors import PayloadShapeError
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="data_sources/openweather")

session = requests.Session()

OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
SOURCE_NAME = "weather"

EXTREME_HEAT_F = 100
FREEZING_F = 32
EXTREME_HEAT_ALERT = "Extreme heat warning"
FREEZING_ALERT = "Freezing temperature alert"
GENERIC_UPSTREAM_ALERT = "Weather alert active"

# OpenWeatherMap condition ids that warrant an alert.
# https://openweathermap.org/weather-conditions
SEVERE_CONDITION_IDS = frozenset({
    200, 201, 202, 210, 211, 212, 221, 230, 231, 232,  # thunderstorms
    502, 503, 504, 511, 522, 531,  # heavy / freezing rain
    602, 622,  # heavy snow
    711, 721, 731, 741, 751, 761, 762, 771, 781,  # smoke, haze, dust, fog, ash, squalls, tornado
})


def round_temperature(value: float) -> int:
    """Round half away from zero, matching how the temperature is displayed."""
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def _condition_alert(conditions: Any) -> Optional[str]:
    """Alert text for the primary condition when its id is in the severe set."""
    if not isinstance(conditions, list) or not conditions or not isinstance(conditions[0], dict):
        return None
    primary = conditions[0]
    if primary.get("id") not in SEVERE_CONDITION_IDS:
        return None
    main = primary.get("main") or "Severe weather"
    description = primary.get("description") or ""
    return f"{main}: {description}" if description else main


def _upstream_alert(alerts: Any) -> Optional[str]:
    """Text of the first upstream-issued alert, if the payload carries any."""
    if not isinstance(alerts, list) or not alerts:
        return None
    first = alerts[0] if isinstance(alerts[0], dict) else {}
    return first.get("event") or first.get("description") or GENERIC_UPSTREAM_ALERT


def derive_alert(temp_f: int, conditions: Any = None, alerts: Any = None) -> str:
    """Pick the alert text: upstream alert, else temperature threshold, else severe condition, else "none"."""
    upstream = _upstream_alert(alerts)
    if upstream:
        return upstream
    if temp_f >= EXTREME_HEAT_F:
        return EXTREME_HEAT_ALERT
    if temp_f <= FREEZING_F:
        return FREEZING_ALERT
    return _condition_alert(conditions) or NO_ALERT


def parse_weather_payload(data: Any) -> WeatherMetric:
    """Turn an OpenWeatherMap current-weather payload into a WeatherMetric."""
    if not isinstance(data, dict) or not isinstance(data.get("main"), dict):
        raise PayloadShapeError(SOURCE_NAME, "missing 'main' block")
    raw_temp = data["main"].get("temp")
    if isinstance(raw_temp, bool) or not isinstance(raw_temp, (int, float)) or math.isnan(raw_temp):
        raise PayloadShapeError(SOURCE_NAME, f"invalid temperature {raw_temp!r}")
    temp = round_temperature(float(raw_temp))
    return WeatherMetric(temp=temp, alert=derive_alert(temp, data.get("weather"), data.get("alerts")))


def fetch_current_weather(api_key: str | None,
                          latitude: float,
                          longitude: float,
                          *,
                          timeout: float = 10,
                          ) -> WeatherMetric:
    """Fetch current conditions in °F for the given coordinates."""
    key = require_credential(api_key, "WEATHER_API_KEY")
    params = {
        "lat": latitude,
        "lon": longitude,
        "appid": key,
        "units": "imperial",
        "lang": "en",
    }
    logger.debug(
        "Requesting OpenWeatherMap conditions",
        extra={"url": mask_url(OPENWEATHER_CURRENT_URL), "lat": latitude, "lon": longitude},
    )
    data = get_json(session, SOURCE_NAME, OPENWEATHER_CURRENT_URL, params=params, timeout=timeout)
    return parse_weather_payload(data)
