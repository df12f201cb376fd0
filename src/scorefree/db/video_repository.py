"""Repository for interacting with the `videos` table."""

from __future__ import annotations

from typing import Collection, List, Optional
from uuid import UUID

from psycopg2.extras import Json

from scorefree.db import ConnectionFactory
from scorefree.db.repositories import BaseRepository
from scorefree.models.video import ClassificationResult, VideoRecord


class VideoRepository(BaseRepository[VideoRecord]):
    """Data access object implementing the :class:`scorefree.services.VideoStore` protocol."""

    table_name = "videos"
    model_type = VideoRecord
    insert_fields = (
        "external_id",
        "title",
        "description",
        "thumbnail_url",
        "channel_name",
        "published_at",
        "duration_iso",
        "view_count",
        "category",
        "is_score_free",
        "classification",
    )

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def insert_if_absent(self, record: VideoRecord) -> Optional[VideoRecord]:
        """Insert ``record`` keyed on ``external_id``; ``None`` means the video was already stored."""

        return self.insert_ignoring_conflict(record, ("external_id",))

    def list_pending(self, limit: int) -> List[VideoRecord]:
        """Return the oldest records that have not been classified yet."""

        return self.fetch_all("classification IS NULL", order_by="created_at ASC, id ASC", limit=limit)

    def list_classified(self, limit: int) -> List[VideoRecord]:
        """Return classified records, least recently classified first."""

        return self.fetch_all(
            "classification IS NOT NULL",
            order_by="(classification->>'classified_at') ASC, id ASC",
            limit=limit,
        )

    def save_classification(
        self,
        external_id: str,
        result: ClassificationResult,
        *,
        only_pending: bool = True,
    ) -> Optional[VideoRecord]:
        """Write the verdict and the full result in one statement.

        With ``only_pending`` the update is guarded by ``classification IS NULL`` so a row
        classified concurrently is left alone and ``None`` is returned.
        """

        guard = " AND classification IS NULL" if only_pending else ""
        query = (
            f"UPDATE {self.table_name} "
            "SET is_score_free = %(is_score_free)s, classification = %(classification)s, updated_at = NOW() "
            f"WHERE external_id = %(external_id)s{guard} RETURNING *"
        )
        params = {
            "external_id": external_id,
            "is_score_free": result.is_score_free,
            "classification": Json(result.to_payload()),
        }
        row = self._fetch_optional(query, params)
        return self.model_type.model_validate(row) if row is not None else None

    def list_score_free(
        self,
        *,
        category: Optional[str] = None,
        min_confidence: int = 0,
        exclude_ids: Collection[UUID] = (),
        limit: int = 50,
    ) -> List[VideoRecord]:
        """Return classified score-free videos, newest first, for display."""

        clauses = [
            "is_score_free = TRUE",
            "classification IS NOT NULL",
            "(classification->>'confidence')::int >= %(min_confidence)s",
        ]
        params: dict[str, object] = {"min_confidence": min_confidence}
        if category:
            clauses.append("lower(category) = lower(%(category)s)")
            params["category"] = category
        if exclude_ids:
            clauses.append("NOT (id = ANY(%(exclude_ids)s::uuid[]))")
            params["exclude_ids"] = [str(identifier) for identifier in exclude_ids]

        return self.fetch_all(" AND ".join(clauses), params, order_by="published_at DESC", limit=limit)

    def _transform_value(self, field: str, value: object) -> object:
        if field == "classification" and value is not None:
            return Json(value)
        return super()._transform_value(field, value)


__all__ = ["VideoRepository"]
