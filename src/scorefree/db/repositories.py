"""Generic repository abstractions for Postgres-backed persistence."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import ClassVar, Dict, Generic, Iterable, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import psycopg2
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.extras import RealDictCursor

from scorefree.db import ConnectionFactory, Row
from scorefree.models.base import ScoreFreeBaseModel

ModelT = TypeVar("ModelT", bound=ScoreFreeBaseModel)


class RepositoryError(RuntimeError):
    """Base exception raised for repository layer failures."""


class BaseRepository(Generic[ModelT]):
    """Reusable building block for table-specific repositories."""

    table_name: ClassVar[str]
    model_type: ClassVar[Type[ModelT]]
    insert_fields: ClassVar[Sequence[str]]

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert_ignoring_conflict(self, model: ModelT, conflict_columns: Sequence[str]) -> Optional[ModelT]:
        """Insert a record unless it collides on ``conflict_columns``.

        Returns the inserted row, or ``None`` when an existing row already owns the key. The
        existing row is never modified.
        """

        payload = self._serialize(model, fields=self.insert_fields, include_none=False)
        columns, placeholders = self._build_insert_clause(payload)
        conflict_target = ", ".join(conflict_columns)
        query = (
            f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders}) "
            f"ON CONFLICT ({conflict_target}) DO NOTHING RETURNING *"
        )
        row = self._fetch_optional(query, payload)
        return self.model_type.model_validate(row) if row is not None else None

    def fetch_all(
        self,
        where_clause: Optional[str] = None,
        params: Optional[Mapping[str, object]] = None,
        *,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        """Return all records, optionally filtered by a predicate."""

        query_params: Dict[str, object] = dict(params or {})
        base_query = f"SELECT * FROM {self.table_name}"
        if where_clause:
            base_query = f"{base_query} WHERE {where_clause}"
        if order_by:
            base_query = f"{base_query} ORDER BY {order_by}"
        if limit is not None:
            base_query = f"{base_query} LIMIT %(limit)s"
            query_params["limit"] = limit
        rows = self._fetch_many(base_query, query_params)
        return [self.model_type.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _serialize(
        self,
        model: ModelT,
        *,
        fields: Iterable[str],
        include_none: bool,
    ) -> Dict[str, object]:
        raw_values = model.to_payload()
        payload: Dict[str, object] = {}

        for field in fields:
            if field not in raw_values:
                continue
            value = raw_values[field]
            if value is None and not include_none:
                continue
            payload[field] = self._transform_value(field, value)

        return payload

    def _transform_value(self, field: str, value: object) -> object:  # noqa: D401
        """Hook for subclasses to customise value transformations."""

        return value

    def _build_insert_clause(self, payload: Mapping[str, object]) -> Tuple[str, str]:
        columns = ", ".join(payload.keys())
        placeholders = ", ".join(f"%({field})s" for field in payload.keys())
        return columns, placeholders

    def _fetch_optional(self, query: str, params: Mapping[str, object]) -> Optional[Row]:
        try:
            with self._connection() as connection:
                with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(query, params)
                    row = cursor.fetchone()
                    return dict(row) if row is not None else None
        except psycopg2.Error as exc:
            raise RepositoryError(f"{self.table_name}: {exc.__class__.__name__}: {exc}".strip()) from exc

    def _fetch_many(self, query: str, params: Mapping[str, object]) -> list[Row]:
        try:
            with self._connection() as connection:
                with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(query, params)
                    rows = cursor.fetchall()
                    return [dict(row) for row in rows]
        except psycopg2.Error as exc:
            raise RepositoryError(f"{self.table_name}: {exc.__class__.__name__}: {exc}".strip()) from exc

    def _connection(self) -> AbstractContextManager[PsycopgConnection]:
        return self._connection_factory()


__all__ = [
    "BaseRepository",
    "RepositoryError",
]
