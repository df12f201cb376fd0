"""Postgres access for Scorefree: pooled connections, repositories, and migrations."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Mapping, Protocol

from psycopg2.extensions import connection as PsycopgConnection

Row = Mapping[str, object]


class ConnectionFactory(Protocol):
    """Zero-argument callable returning a context manager around one pooled connection.

    The context manager commits on clean exit and rolls back when the block raises.
    """

    def __call__(self) -> AbstractContextManager[PsycopgConnection]: ...


__all__ = ["ConnectionFactory", "Row"]
