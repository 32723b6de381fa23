"""Pydantic schemas describing the outcome of a scrape cycle."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SeriesStatus(str, Enum):
    """Outcome of extracting one series within a cycle."""

    ok = "ok"
    failed = "failed"
    skipped = "skipped"


class CycleError(BaseModel):
    """A failure recorded against a cycle or a single series."""

    kind: str = Field(..., description="One of network, parse, not_found or internal.")
    message: str


class SeriesOutcome(BaseModel):
    """Result for a single series in a cycle."""

    series: str
    metric: str
    status: SeriesStatus
    price: Optional[float] = None
    error: Optional[CycleError] = None


class ScrapeReport(BaseModel):
    """Summary of one fetch-extract-publish pass."""

    url: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
    error: Optional[CycleError] = None
    series: List[SeriesOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.error is None and all(
            outcome.status is SeriesStatus.ok for outcome in self.series
        )
