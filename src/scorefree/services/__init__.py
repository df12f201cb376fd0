"""Service layer for the Scorefree pipeline."""

from __future__ import annotations

from typing import List, Optional, Protocol

from scorefree.models.video import ClassificationResult, VideoRecord


class CategoryFetcher(Protocol):
    """Protocol describing a catalog that returns candidate videos for a category."""

    async def fetch(self, category: str, max_results: int) -> List[VideoRecord]:
        """Return normalised, unclassified records for ``category``."""


class VideoStore(Protocol):
    """Protocol describing the record store used by ingestion and reclassification.

    Implementations are synchronous; services call them from worker threads.
    """

    def insert_if_absent(self, record: VideoRecord) -> Optional[VideoRecord]:
        """Insert ``record`` unless its ``external_id`` exists; return the stored row or ``None``."""

    def list_pending(self, limit: int) -> List[VideoRecord]:
        """Return up to ``limit`` records whose classification is still missing."""

    def list_classified(self, limit: int) -> List[VideoRecord]:
        """Return up to ``limit`` already classified records, least recently classified first."""

    def save_classification(
        self,
        external_id: str,
        result: ClassificationResult,
        *,
        only_pending: bool = True,
    ) -> Optional[VideoRecord]:
        """Persist ``result`` and its verdict together; return ``None`` when no row matched."""


__all__ = ["CategoryFetcher", "VideoStore"]
