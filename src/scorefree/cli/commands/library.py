"""CLI command for browsing stored score-free videos."""

from __future__ import annotations

import json
from typing import Optional, Sequence
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from scorefree.cli.commands.pipeline import PipelineExitCode, load_settings
from scorefree.db.connection import close_pool, get_connection
from scorefree.db.preference_repository import InteractionRepository
from scorefree.db.repositories import RepositoryError
from scorefree.db.video_repository import VideoRepository
from scorefree.models.video import VideoRecord


def register(app: typer.Typer, console: Console) -> None:
    """Register the ``videos`` listing command."""

    @app.command("videos")
    def videos(
        category: Optional[str] = typer.Option(None, "--category", "-c", help="Only show this category"),
        user: Optional[UUID] = typer.Option(None, "--user", help="Hide videos this user marked hidden"),
        min_confidence: int = typer.Option(
            60, "--min-confidence", min=0, max=100, help="Minimum classifier confidence"
        ),
        limit: int = typer.Option(20, "--limit", min=1, help="Maximum videos to list"),
        json_output: bool = typer.Option(False, "--json", help="Output videos as JSON"),
    ) -> None:
        """List stored score-free videos, newest first."""

        load_settings(console)
        try:
            hidden = InteractionRepository(get_connection).hidden_video_ids(user) if user is not None else set()
            records = VideoRepository(get_connection).list_score_free(
                category=category,
                min_confidence=min_confidence,
                exclude_ids=hidden,
                limit=limit,
            )
        except RepositoryError as exc:
            console.print(f"[red]Storage error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.STORAGE_ERROR) from exc
        finally:
            close_pool()

        if json_output:
            typer.echo(json.dumps([_video_payload(record) for record in records], ensure_ascii=False, indent=2))
            return

        if not records:
            console.print("[yellow]No score-free videos found.[/yellow]")
            return
        _render_videos(console, records)


def _video_payload(record: VideoRecord) -> dict[str, object]:
    return {
        "id": str(record.id) if record.id else None,
        "external_id": record.external_id,
        "title": record.title,
        "channel_name": record.channel_name,
        "category": record.category,
        "published_at": record.published_at.isoformat(),
        "duration": record.display_duration,
        "views": record.display_views,
        "thumbnail_url": record.thumbnail_url,
        "url": record.watch_url,
        "confidence": record.classification.confidence if record.classification else None,
    }


def _render_videos(console: Console, records: Sequence[VideoRecord]) -> None:
    table = Table(title="Score-free Videos")
    table.add_column("Title", overflow="fold")
    table.add_column("Category")
    table.add_column("Channel")
    table.add_column("Duration", justify="right")
    table.add_column("Views", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("URL", overflow="fold")

    for record in records:
        confidence = f"{record.classification.confidence}%" if record.classification else "-"
        table.add_row(
            record.title,
            record.category,
            record.channel_name or "<unknown>",
            record.display_duration,
            record.display_views,
            confidence,
            record.watch_url,
        )

    console.print(table)


__all__ = ["register"]
