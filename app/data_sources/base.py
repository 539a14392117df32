"""Generic fetch-with-cache-and-fallback routine shared by every upstream source."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Protocol, TypeVar

import requests

from app.app_types import CachedMetric
from app.cache import TTLCache
from app.errors import ConfigurationError, MissingCredentialError, SourceFetchError
from utils.logging_utils import get_tagged_logger, mask_secrets

logger = get_tagged_logger(__name__, tag="data_sources/base")

M = TypeVar("M")

USER_AGENT = "OpsIntel-Dashboard/1.0"
DEFAULT_HEADERS = {"Accept": "application/json", "User-Agent": USER_AGENT}

# Status codes that get a specific explanation in the logs.
_STATUS_HINTS = {
    401: "invalid API key",
    403: "invalid API key or access denied",
    404: "resource not found",
    429: "rate limit exceeded",
}


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(tz=timezone.utc)


def require_credential(value: str | None, env_var: str) -> str:
    """Return the credential or raise MissingCredentialError when it is not configured."""
    if not value:
        raise MissingCredentialError(env_var)
    return value


def get_json(session: requests.Session, source: str, url: str, *, params: Dict[str, Any] | None = None,
             timeout: float) -> Any:
    """GET `url` and return the decoded JSON body, raising SourceFetchError on non-2xx or non-JSON."""
    resp = session.get(url, params=params, headers=DEFAULT_HEADERS, timeout=timeout)
    status_code = getattr(resp, "status_code", 200)
    if not 200 <= status_code < 300:
        hint = _STATUS_HINTS.get(status_code, "upstream error")
        raise SourceFetchError(source, f"HTTP {status_code} ({hint})")
    try:
        return resp.json()
    except ValueError as exc:
        raise SourceFetchError(source, "response body is not JSON") from exc


class MetricFetcher(Protocol[M]):
    """Anything that returns a metric with its fetch time and never raises."""

    def get(self) -> CachedMetric[M]:
        """Return the cached, freshly fetched, or fallback metric."""
        ...


@dataclass
class SourceFetcher(Generic[M]):
    """One upstream source: cache lookup, guarded fetch, fixed fallback.

    `fetch` is a zero-argument callable that either returns a metric or
    raises; it is only invoked when the cache has no live entry for
    `cache_key`. Successful results are cached for `ttl_seconds` together with
    their fetch time. Failures are logged and answered with `fallback`, which
    is never cached so the next poll retries the upstream.
    """

    name: str
    cache_key: str
    ttl_seconds: float
    fetch: Callable[[], M]
    fallback: M
    cache: TTLCache
    now: Callable[[], datetime] = field(default=utcnow)

    def get(self) -> CachedMetric[M]:
        """Return the metric for this source; never raises."""
        cached = self.cache.get(self.cache_key)
        if cached is not None:
            logger.debug("Cache hit", extra={"source": self.name})
            return cached

        logger.debug("Cache miss; fetching upstream", extra={"source": self.name})
        try:
            value = self.fetch()
        except MissingCredentialError as exc:
            logger.error("Missing credential; serving fallback", extra={"source": self.name, "env_var": exc.env_var})
            return CachedMetric(data=self.fallback, fetched_at=None)
        except (ConfigurationError, SourceFetchError, requests.RequestException, ValueError) as exc:
            error = mask_secrets(str(exc))
            logger.warning(
                "Upstream fetch failed for %s; serving fallback: %s", self.name, error,
                extra={"source": self.name, "error": error},
            )
            return CachedMetric(data=self.fallback, fetched_at=None)
        except Exception as exc:
            logger.exception("Unexpected error fetching %s; serving fallback: %s", self.name, mask_secrets(str(exc)))
            return CachedMetric(data=self.fallback, fetched_at=None)

        result = CachedMetric(data=value, fetched_at=self.now())
        self.cache.set(self.cache_key, result, self.ttl_seconds)
        logger.info("Fetched fresh value", extra={"source": self.name, "ttl_seconds": self.ttl_seconds})
        return result

    def cache_status(self) -> Dict[str, Any]:
        """Whether a live entry exists and how long it has left."""
        remaining = self.cache.expires_in(self.cache_key)
        return {
            "cached": remaining is not None,
            "expires_in_seconds": round(remaining, 1) if remaining is not None else None,
        }

    def clear(self) -> None:
        """Drop this source's cached value so the next call refetches."""
        self.cache.delete(self.cache_key)
