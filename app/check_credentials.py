# app/check_credentials.py
"""Startup preflight and health probe for the upstream API credentials."""

import sys
from typing import Any, Dict, Optional

from app.config import Settings, settings as default_settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="check_credentials")

# Settings field -> environment variable, and what goes dark without it.
CREDENTIALS = {
    "fred_api_key": ("FRED_API_KEY", "production index"),
    "eia_api_key": ("EIA_API_KEY", "electricity price"),
    "weather_api_key": ("WEATHER_API_KEY", "local weather"),
    "claude_api_key": ("CLAUDE_API_KEY", "AI insights"),
}


def get_credential_status(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Non-fatal probe of the configured credentials.

    Returns a dict like:
    {
      "ok": bool,
      "configured": ["FRED_API_KEY", ...],
      "missing": ["CLAUDE_API_KEY", ...],
    }

    Values are never included. This NEVER sys.exit(). Suitable for health checks.
    """
    settings = settings or default_settings
    configured, missing = [], []
    for field_name, (env_var, _feature) in CREDENTIALS.items():
        if getattr(settings, field_name, None):
            configured.append(env_var)
        else:
            missing.append(env_var)
    return {"ok": not missing, "configured": configured, "missing": missing}


def check_credentials(settings: Optional[Settings] = None, strict: Optional[bool] = None) -> Dict[str, Any]:
    """
    "Hard" check for startup.

    - Logs every missing credential together with the dashboard panel that will
      show fallback values because of it.
    - With strict=True (default from DASHBOARD_STRICT_CREDENTIALS) a missing
      credential is fatal and the process exits with status 1.
    """
    settings = settings or default_settings
    if strict is None:
        strict = settings.strict_credentials

    status = get_credential_status(settings)
    if status["ok"]:
        logger.info("All upstream credentials configured")
        return status

    env_to_feature = {env: feature for env, feature in CREDENTIALS.values()}
    for env_var in status["missing"]:
        logger.error(f"{env_var} is not set; {env_to_feature[env_var]} will show fallback values")

    if strict:
        logger.error("Missing credentials with DASHBOARD_STRICT_CREDENTIALS=true; refusing to start.")
        sys.exit(1)
    return status
