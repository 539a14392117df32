"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar

from app.domain import InsightMetric

M = TypeVar("M")


@dataclass(frozen=True)
class CachedMetric(Generic[M]):
    """A source metric with the time it was fetched; fetched_at is None for fallback values."""
    data: M
    fetched_at: Optional[datetime]

    @property
    def is_fallback(self) -> bool:
        return self.fetched_at is None


@dataclass(frozen=True)
class CachedInsight:
    """An insight with the time the text-generation call produced it.

    generated_at is None for rule-based and invalid-input insights, which were
    never produced by a successful generation run.
    """
    data: InsightMetric
    generated_at: Optional[datetime]
    fingerprint: Optional[str] = None
    source: str = "ai"
