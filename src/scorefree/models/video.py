"""Pydantic models describing catalog videos and their spoiler classification."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from scorefree.models.base import ScoreFreeBaseModel
from scorefree.utils.formatting import format_duration, format_view_count

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


class ClassificationResult(ScoreFreeBaseModel):
    """Verdict produced by :class:`scorefree.services.classifier.TextClassifier`.

    Stored verbatim in the ``videos.classification`` JSONB column, so every field must
    survive a ``model_dump(mode="json")`` / ``model_validate`` round trip.
    """

    is_score_free: bool
    confidence: int = Field(ge=0, le=100)
    flagged_terms: List[str] = Field(default_factory=list)
    reasoning: str
    classified_at: datetime

    @field_validator("flagged_terms")
    @classmethod
    def _unique_terms(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))


class VideoRecord(ScoreFreeBaseModel):
    """Domain model representing a row in the ``videos`` table.

    Records are created by the catalog fetcher without a classification; ``is_score_free``
    stays ``True`` until a classification is attached, and the two fields are always
    written together afterwards.
    """

    id: Optional[UUID] = None
    external_id: str = Field(min_length=1, max_length=64)
    title: str
    description: str = ""
    thumbnail_url: Optional[str] = None
    channel_name: str = ""
    published_at: datetime
    duration_iso: str = "PT0S"
    view_count: int = Field(default=0, ge=0)
    category: str = Field(min_length=1)
    is_score_free: bool = True
    classification: Optional[ClassificationResult] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: object) -> object:
        return "" if value is None else value

    @property
    def is_pending(self) -> bool:
        """Whether the record still awaits classification."""

        return self.classification is None

    @property
    def display_duration(self) -> str:
        return format_duration(self.duration_iso)

    @property
    def display_views(self) -> str:
        return format_view_count(self.view_count)

    @property
    def watch_url(self) -> str:
        return WATCH_URL_TEMPLATE.format(video_id=self.external_id)

    def with_classification(self, result: ClassificationResult) -> "VideoRecord":
        """Return a copy carrying ``result`` with the verdict mirrored into ``is_score_free``."""

        return self.model_copy(update={"classification": result, "is_score_free": result.is_score_free})


__all__ = ["ClassificationResult", "VideoRecord", "WATCH_URL_TEMPLATE"]
