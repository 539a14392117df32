"""HTTP API for the operations dashboard."""

import threading
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from .check_credentials import get_credential_status
from .config import settings
from .dashboard import DashboardService
from .domain import DashboardSnapshot
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/api")

_TRUE_VALUES = {"1", "true", "yes", "on"}

_service: Optional[DashboardService] = None
_service_lock = threading.Lock()


def get_dashboard_service() -> DashboardService:
    """Return the process-wide dashboard service, creating it on first use."""
    global _service
    with _service_lock:
        if _service is None:
            logger.info("Initializing dashboard service")
            _service = DashboardService(settings=settings)
        return _service


def use_service_for_tests(service: Optional[DashboardService]) -> None:
    """Swap the process-wide service (None resets to lazy creation) so tests stay isolated."""
    global _service
    with _service_lock:
        _service = service


def _parse_flag(raw: Optional[str]) -> bool:
    """Interpret an optional query flag; anything unrecognised is False."""
    return raw is not None and raw.strip().lower() in _TRUE_VALUES


class SourceCacheStatus(BaseModel):
    """Cache state of one upstream source."""
    cached: bool
    expires_in_seconds: Optional[float] = None


class CacheStatusResponse(BaseModel):
    """Cache state of every source plus insight cache statistics."""
    sources: Dict[str, SourceCacheStatus]
    insights: Dict[str, Any]


class HealthResponse(BaseModel):
    """Credential configuration summary; values are never exposed."""
    ok: bool
    configured: list[str]
    missing: list[str]


router = APIRouter()


@router.get("/dashboard", response_model=DashboardSnapshot)
def get_dashboard(
    refresh: Optional[str] = Query(default=None, description="Set to true to force a new AI insight"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Aggregate production, energy, weather and insight into one payload; always 200."""
    is_manual_refresh = _parse_flag(refresh)
    if is_manual_refresh:
        logger.info("Manual refresh requested")
    return service.snapshot(refresh=is_manual_refresh)


@router.get("/dashboard/cache", response_model=CacheStatusResponse)
def get_cache_status(service: DashboardService = Depends(get_dashboard_service)):
    """Report what is currently cached and for how long."""
    return CacheStatusResponse(**service.cache_status())


@router.delete("/dashboard/cache", response_model=CacheStatusResponse)
def clear_cache(service: DashboardService = Depends(get_dashboard_service)):
    """Drop cached source values and insights so the next poll refetches everything."""
    service.clear_caches()
    return CacheStatusResponse(**service.cache_status())


@router.get("/health", response_model=HealthResponse)
def health():
    """Report which upstream credentials are configured."""
    return HealthResponse(**get_credential_status(settings))
