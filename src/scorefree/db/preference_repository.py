"""Repositories for the per-user `category_preferences` and `user_video_interactions` tables."""

from __future__ import annotations

from typing import Iterable, List, Set
from uuid import UUID

from scorefree.db import ConnectionFactory
from scorefree.db.repositories import BaseRepository
from scorefree.models.preferences import DEFAULT_CATEGORIES, CategoryPreference, UserVideoInteraction


class CategoryPreferenceRepository(BaseRepository[CategoryPreference]):
    """Data access object for the categories a user wants ingested."""

    table_name = "category_preferences"
    model_type = CategoryPreference
    insert_fields = ("user_id", "category_name", "enabled")

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def list_for_user(self, user_id: UUID) -> List[CategoryPreference]:
        return self.fetch_all("user_id = %(user_id)s", {"user_id": str(user_id)}, order_by="category_name ASC")

    def list_enabled_names(self, user_id: UUID) -> List[str]:
        """Return the names of the user's enabled categories, alphabetically."""

        return [preference.category_name for preference in self.list_for_user(user_id) if preference.enabled]

    def seed_defaults(self, user_id: UUID, categories: Iterable[str] = DEFAULT_CATEGORIES) -> List[CategoryPreference]:
        """Create enabled preferences for ``categories``; existing rows are kept as they are."""

        created: List[CategoryPreference] = []
        for name in categories:
            preference = CategoryPreference(user_id=user_id, category_name=name, enabled=True)
            stored = self.insert_ignoring_conflict(preference, ("user_id", "category_name"))
            if stored is not None:
                created.append(stored)
        return created


class InteractionRepository(BaseRepository[UserVideoInteraction]):
    """Read access to per-user watch/like/hide flags."""

    table_name = "user_video_interactions"
    model_type = UserVideoInteraction
    insert_fields = ("user_id", "video_id", "watched", "liked", "hidden")

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        super().__init__(connection_factory)

    def hidden_video_ids(self, user_id: UUID) -> Set[UUID]:
        """Return ids of videos the user has hidden."""

        rows = self.fetch_all("user_id = %(user_id)s AND hidden = TRUE", {"user_id": str(user_id)})
        return {row.video_id for row in rows}


__all__ = ["CategoryPreferenceRepository", "InteractionRepository"]
