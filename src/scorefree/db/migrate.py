"""Apply the bundled SQL migrations once each, tracked in `schema_migrations`."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Set

from psycopg2.extensions import cursor as PsycopgCursor
from rich.console import Console
from rich.table import Table

from scorefree.config.settings import get_settings
from scorefree.db.connection import connection_from_dsn

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"

_TRACKING_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    name TEXT PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


def load_migration_files(directory: Path = MIGRATIONS_ROOT) -> List[Path]:
    """Return ``*.sql`` files in lexical order; names are prefixed with a sequence number."""

    return sorted(directory.glob("*.sql"))


def _applied_names(db_cursor: PsycopgCursor) -> Set[str]:
    db_cursor.execute(_TRACKING_DDL)
    db_cursor.execute("SELECT name FROM schema_migrations")
    return {row[0] for row in db_cursor.fetchall()}


def _apply(db_cursor: PsycopgCursor, migration: Path) -> None:
    db_cursor.execute(migration.read_text(encoding="utf-8"))
    db_cursor.execute("INSERT INTO schema_migrations (name) VALUES (%s)", (migration.name,))


def run_migrations(
    console: Optional[Console] = None,
    *,
    dsn: Optional[str] = None,
    migrations: Optional[Sequence[Path]] = None,
) -> int:
    """Apply pending migrations in one transaction and return how many ran.

    Files already listed in ``schema_migrations`` are reported as skipped. Any failure
    rolls back the whole run, including the tracking rows.
    """

    console = console or Console()
    files = list(migrations) if migrations is not None else load_migration_files()
    if not files:
        console.print("[yellow]No migrations found.[/yellow]")
        return 0

    connection = connection_from_dsn(dsn or str(get_settings().database_url))
    table = Table(title="Database Migrations")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")

    applied = 0
    try:
        with connection.cursor() as db_cursor:
            done = _applied_names(db_cursor)
            for migration in files:
                if migration.name in done:
                    table.add_row(migration.name, "[dim]skipped[/dim]")
                    continue
                _apply(db_cursor, migration)
                applied += 1
                table.add_row(migration.name, "[green]applied[/green]")
        connection.commit()
    except Exception as exc:
        connection.rollback()
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise
    finally:
        connection.close()

    console.print(table)
    return applied


if __name__ == "__main__":  # pragma: no cover
    run_migrations()
