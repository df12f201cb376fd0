"""Tests for the Postgres repositories against a recording connection double."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

import psycopg2
import pytest
from psycopg2.extras import Json

from scorefree.db.preference_repository import CategoryPreferenceRepository, InteractionRepository
from scorefree.db.repositories import RepositoryError
from scorefree.db.video_repository import VideoRepository
from scorefree.models.preferences import DEFAULT_CATEGORIES
from scorefree.services.classifier import TextClassifier
from tests.unit.fakes import FIXED_NOW, make_record


class RecordingCursor:
    def __init__(self, connection: "RecordingConnection") -> None:
        self._connection = connection

    def __enter__(self) -> "RecordingCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def execute(self, query: str, params: Dict[str, object]) -> None:
        if self._connection.error is not None:
            raise self._connection.error
        self._connection.executed.append((query, dict(params)))

    def fetchone(self) -> Optional[Dict[str, object]]:
        rows = self._connection.rows
        return rows.pop(0) if rows else None

    def fetchall(self) -> List[Dict[str, object]]:
        rows, self._connection.rows = self._connection.rows, []
        return rows


class RecordingConnection:
    def __init__(self) -> None:
        self.executed: List[tuple[str, Dict[str, object]]] = []
        self.rows: List[Dict[str, object]] = []
        self.error: Optional[Exception] = None

    def cursor(self, cursor_factory=None) -> RecordingCursor:
        return RecordingCursor(self)

    @contextmanager
    def factory(self) -> Iterator["RecordingConnection"]:
        yield self

    @property
    def last_query(self) -> str:
        return self.executed[-1][0]

    @property
    def last_params(self) -> Dict[str, object]:
        return self.executed[-1][1]


def _video_row(external_id: str, **overrides: object) -> Dict[str, object]:
    row = make_record(external_id).model_dump()
    row.update({"id": uuid4(), "created_at": FIXED_NOW, "updated_at": FIXED_NOW})
    row.update(overrides)
    return row


@pytest.fixture
def connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture
def videos(connection: RecordingConnection) -> VideoRepository:
    return VideoRepository(connection.factory)


class TestVideoRepository:
    def test_insert_if_absent_ignores_conflicts(self, videos: VideoRepository, connection: RecordingConnection) -> None:
        connection.rows = [_video_row("aaaaaaaaaaa")]

        stored = videos.insert_if_absent(make_record("aaaaaaaaaaa"))

        assert stored is not None and stored.id is not None
        assert "ON CONFLICT (external_id) DO NOTHING RETURNING *" in connection.last_query
        assert "classification" not in connection.last_params
        assert connection.last_params["external_id"] == "aaaaaaaaaaa"

    def test_insert_if_absent_returns_none_for_existing_rows(
        self, videos: VideoRepository, connection: RecordingConnection
    ) -> None:
        assert videos.insert_if_absent(make_record("aaaaaaaaaaa")) is None

    def test_classification_is_written_as_json(self, videos: VideoRepository, connection: RecordingConnection) -> None:
        result = TextClassifier().classify("Amazing highlights", classified_at=FIXED_NOW)
        record = make_record("aaaaaaaaaaa").with_classification(result)

        videos.insert_if_absent(record)

        payload = connection.last_params["classification"]
        assert isinstance(payload, Json)
        assert payload.adapted["confidence"] == result.confidence
        assert connection.last_params["is_score_free"] is True

    def test_list_pending_selects_unclassified_oldest_first(
        self, videos: VideoRepository, connection: RecordingConnection
    ) -> None:
        connection.rows = [_video_row("aaaaaaaaaaa"), _video_row("bbbbbbbbbbb")]

        records = videos.list_pending(25)

        assert [record.external_id for record in records] == ["aaaaaaaaaaa", "bbbbbbbbbbb"]
        assert "WHERE classification IS NULL ORDER BY created_at ASC" in connection.last_query
        assert connection.last_params["limit"] == 25

    def test_rows_with_stored_classification_are_parsed(
        self, videos: VideoRepository, connection: RecordingConnection
    ) -> None:
        stored = {
            "is_score_free": False,
            "confidence": 5,
            "flagged_terms": ["defeat", "112-108"],
            "reasoning": "Content may contain spoilers. Found 3 score-related terms",
            "classified_at": "2024-03-10T18:00:00+00:00",
        }
        connection.rows = [_video_row("aaaaaaaaaaa", is_score_free=False, classification=stored)]

        [record] = videos.list_classified(1)

        assert record.classification is not None
        assert record.classification.classified_at == datetime(2024, 3, 10, 18, 0, tzinfo=timezone.utc)
        assert "classification IS NOT NULL" in connection.last_query

    def test_save_classification_is_guarded_by_default(
        self, videos: VideoRepository, connection: RecordingConnection
    ) -> None:
        result = TextClassifier().classify("Lakers defeat Celtics 112-108", classified_at=FIXED_NOW)

        assert videos.save_classification("aaaaaaaaaaa", result) is None
        assert "AND classification IS NULL" in connection.last_query
        assert "SET is_score_free = %(is_score_free)s, classification = %(classification)s" in connection.last_query
        assert connection.last_params["is_score_free"] is False

    def test_save_classification_without_guard(self, videos: VideoRepository, connection: RecordingConnection) -> None:
        result = TextClassifier().classify("Amazing highlights", classified_at=FIXED_NOW)
        connection.rows = [_video_row("aaaaaaaaaaa", classification=result.model_dump(mode="json"))]

        updated = videos.save_classification("aaaaaaaaaaa", result, only_pending=False)

        assert updated is not None and updated.classification == result
        assert "classification IS NULL" not in connection.last_query

    def test_list_score_free_filters(self, videos: VideoRepository, connection: RecordingConnection) -> None:
        hidden = uuid4()

        videos.list_score_free(category="Soccer", min_confidence=70, exclude_ids={hidden}, limit=10)

        query, params = connection.executed[-1]
        assert "is_score_free = TRUE" in query
        assert "lower(category) = lower(%(category)s)" in query
        assert "ORDER BY published_at DESC" in query
        assert params["exclude_ids"] == [str(hidden)]
        assert params["min_confidence"] == 70

    def test_driver_errors_become_repository_errors(
        self, videos: VideoRepository, connection: RecordingConnection
    ) -> None:
        connection.error = psycopg2.OperationalError("server closed the connection")

        with pytest.raises(RepositoryError, match="videos: OperationalError"):
            videos.list_pending(5)


class TestPreferenceRepositories:
    def test_seed_defaults_inserts_every_default_category(self, connection: RecordingConnection) -> None:
        user_id = uuid4()
        repository = CategoryPreferenceRepository(connection.factory)
        connection.rows = [
            {"id": uuid4(), "user_id": user_id, "category_name": name, "enabled": True}
            for name in DEFAULT_CATEGORIES
        ]

        created = repository.seed_defaults(user_id)

        assert [preference.category_name for preference in created] == list(DEFAULT_CATEGORIES)
        assert len(connection.executed) == len(DEFAULT_CATEGORIES)
        assert "ON CONFLICT (user_id, category_name) DO NOTHING" in connection.last_query

    def test_list_enabled_names_skips_disabled(self, connection: RecordingConnection) -> None:
        user_id = uuid4()
        connection.rows = [
            {"id": uuid4(), "user_id": user_id, "category_name": "Basketball", "enabled": True},
            {"id": uuid4(), "user_id": user_id, "category_name": "Golf", "enabled": False},
        ]

        names = CategoryPreferenceRepository(connection.factory).list_enabled_names(user_id)

        assert names == ["Basketball"]
        assert connection.last_params["user_id"] == str(user_id)

    def test_hidden_video_ids(self, connection: RecordingConnection) -> None:
        user_id, video_id = uuid4(), uuid4()
        connection.rows = [{"id": uuid4(), "user_id": user_id, "video_id": video_id, "hidden": True}]

        hidden = InteractionRepository(connection.factory).hidden_video_ids(user_id)

        assert hidden == {video_id}
        assert "hidden = TRUE" in connection.last_query
