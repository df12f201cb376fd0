"""Structured results returned by the ingestion and reclassification runs."""

from __future__ import annotations

from typing import List

from pydantic import Field

from scorefree.models.base import ScoreFreeBaseModel


class CategoryError(ScoreFreeBaseModel):
    """A category whose catalog fetch failed during an ingestion pass."""

    category: str
    message: str


class RecordError(ScoreFreeBaseModel):
    """A single record whose write to the store failed."""

    external_id: str
    message: str


class IngestionReport(ScoreFreeBaseModel):
    """Outcome of one ingestion pass.

    ``found`` counts fetched candidates before deduplication; ``stored`` counts rows that
    were actually inserted.
    """

    categories: List[str] = Field(default_factory=list)
    found: int = Field(default=0, ge=0)
    stored: int = Field(default=0, ge=0)
    score_free: int = Field(default=0, ge=0)
    errors: List[CategoryError] = Field(default_factory=list)
    failed_writes: List[RecordError] = Field(default_factory=list)

    @property
    def duplicates(self) -> int:
        return max(0, self.found - self.stored - len(self.failed_writes))

    @property
    def has_failures(self) -> bool:
        return bool(self.errors or self.failed_writes)


class ReclassificationReport(ScoreFreeBaseModel):
    """Outcome of one reclassification batch."""

    selected: int = Field(default=0, ge=0)
    updated: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    score_free_count: int = Field(default=0, ge=0)
    errors: List[RecordError] = Field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


__all__ = ["CategoryError", "IngestionReport", "ReclassificationReport", "RecordError"]
