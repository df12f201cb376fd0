"""Per-user category preferences and video interactions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from scorefree.models.base import ScoreFreeBaseModel

DEFAULT_CATEGORIES = (
    "Basketball",
    "Football",
    "Soccer",
    "Baseball",
    "Hockey",
    "Tennis",
    "Golf",
    "Boxing",
    "MMA",
    "Cricket",
)


class CategoryPreference(ScoreFreeBaseModel):
    """Row in ``category_preferences``; enabled rows drive which categories are ingested."""

    id: Optional[UUID] = None
    user_id: UUID
    category_name: str = Field(min_length=1, max_length=100)
    enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("category_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("category_name must not be blank")
        return stripped


class UserVideoInteraction(ScoreFreeBaseModel):
    """Row in ``user_video_interactions``. Only ``hidden`` is consulted when listing videos."""

    id: Optional[UUID] = None
    user_id: UUID
    video_id: UUID
    watched: bool = False
    liked: bool = False
    hidden: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


__all__ = ["CategoryPreference", "DEFAULT_CATEGORIES", "UserVideoInteraction"]
