"""CLI commands for running ingestion passes, reclassification batches, and schema setup."""

from __future__ import annotations

import asyncio
import json
from functools import lru_cache
from typing import List, Optional, Sequence
from uuid import UUID

import psycopg2
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from scorefree.config.settings import ConfigurationError, Settings, get_settings, load_classifier_weights
from scorefree.db.connection import close_pool, get_connection
from scorefree.db.migrate import run_migrations
from scorefree.db.preference_repository import CategoryPreferenceRepository
from scorefree.db.repositories import RepositoryError
from scorefree.db.video_repository import VideoRepository
from scorefree.models.reports import IngestionReport, ReclassificationReport
from scorefree.services.catalog import CatalogFetcher
from scorefree.services.classifier import TextClassifier
from scorefree.services.ingestion import IngestionCoordinator
from scorefree.services.reclassification import ReclassificationJob


class PipelineExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    CONFIGURATION_ERROR = 1
    PARTIAL_FAILURE = 2
    STORAGE_ERROR = 5


def load_settings(console: Console) -> Settings:
    """Return settings, converting validation failures into a configuration exit."""

    try:
        return get_settings()
    except ValidationError as exc:
        fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error.get("loc"))
        console.print(f"[red]Configuration error:[/red] invalid or missing settings ({fields or 'unknown'})")
        raise typer.Exit(code=PipelineExitCode.CONFIGURATION_ERROR) from exc


def register(app: typer.Typer, console: Console) -> None:
    """Register the ingest, reclassify, classify, migrate, and seed-preferences commands."""

    @lru_cache(maxsize=1)
    def get_video_repository() -> VideoRepository:
        return VideoRepository(get_connection)

    @lru_cache(maxsize=1)
    def get_preference_repository() -> CategoryPreferenceRepository:
        return CategoryPreferenceRepository(get_connection)

    async def ingest_pipeline(
        *,
        settings: Settings,
        categories: Sequence[str],
        user_id: Optional[UUID],
        log_console: Console,
    ) -> IngestionReport:
        selected = list(categories)
        if not selected and user_id is not None:
            selected = await asyncio.to_thread(get_preference_repository().list_enabled_names, user_id)
            log_console.log(f"Enabled categories for {user_id}: {', '.join(selected) or 'none'}")

        async with CatalogFetcher(settings=settings, console=log_console) as fetcher:
            coordinator = IngestionCoordinator.from_settings(
                settings,
                fetcher=fetcher,
                store=get_video_repository(),
                console=log_console,
            )
            return await coordinator.run_ingestion(selected)

    @app.command("ingest")
    def ingest(
        category: Optional[List[str]] = typer.Option(
            None, "--category", "-c", help="Category to ingest; repeat for several"
        ),
        user: Optional[UUID] = typer.Option(None, "--user", help="Ingest the enabled categories of this user"),
        max_results: Optional[int] = typer.Option(
            None, "--max-results", min=1, max=50, help="Maximum videos fetched per category"
        ),
        json_output: bool = typer.Option(False, "--json", help="Output the ingestion report as JSON"),
    ) -> None:
        """Fetch recent highlights for each category, classify them, and store new videos."""

        settings = load_settings(console)
        if max_results is not None:
            settings = settings.model_copy(update={"max_results_per_category": max_results})
        log_console = Console(stderr=True) if json_output else console

        try:
            report = asyncio.run(
                ingest_pipeline(settings=settings, categories=category or [], user_id=user, log_console=log_console)
            )
        except ConfigurationError as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.CONFIGURATION_ERROR) from exc
        except RepositoryError as exc:
            console.print(f"[red]Storage error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.STORAGE_ERROR) from exc
        finally:
            close_pool()

        if json_output:
            payload = report.to_payload()
            payload["duplicates"] = report.duplicates
            typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            _render_ingestion_report(console, report)

        if report.has_failures:
            raise typer.Exit(code=PipelineExitCode.PARTIAL_FAILURE)

    @app.command("reclassify")
    def reclassify(
        limit: Optional[int] = typer.Option(None, "--limit", help="Maximum records to classify in this batch"),
        force: bool = typer.Option(False, "--force", help="Re-score records that are already classified"),
        json_output: bool = typer.Option(False, "--json", help="Output the batch report as JSON"),
    ) -> None:
        """Classify stored videos that are still awaiting a verdict."""

        settings = load_settings(console)
        log_console = Console(stderr=True) if json_output else console
        job = ReclassificationJob.from_settings(settings, store=get_video_repository(), console=log_console)

        try:
            report = asyncio.run(job.run_reclassification(limit, force=force))
        except ConfigurationError as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.CONFIGURATION_ERROR) from exc
        except RepositoryError as exc:
            console.print(f"[red]Storage error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.STORAGE_ERROR) from exc
        finally:
            close_pool()

        if json_output:
            typer.echo(json.dumps(report.to_payload(), ensure_ascii=False, indent=2))
        else:
            _render_reclassification_report(console, report)

        if report.has_failures:
            raise typer.Exit(code=PipelineExitCode.PARTIAL_FAILURE)

    @app.command("classify")
    def classify(
        title: str = typer.Argument(..., help="Video title to classify"),
        description: str = typer.Option("", "--description", "-d", help="Video description"),
        json_output: bool = typer.Option(False, "--json", help="Output the verdict as JSON"),
    ) -> None:
        """Dry-run the spoiler classifier without touching the catalog or the database."""

        classifier = TextClassifier(weights=load_classifier_weights())
        result = classifier.classify(title, description)

        if json_output:
            typer.echo(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
            return

        breakdown = classifier.explain(title, description)
        verdict = "[green]score-free[/green]" if result.is_score_free else "[red]possible spoiler[/red]"
        console.print(Panel.fit(f"[bold]{title}[/bold]\nVerdict: {verdict} ({result.confidence}% confidence)", border_style="cyan"))

        table = Table(title="Evidence")
        table.add_column("Signal")
        table.add_column("Score", justify="right")
        table.add_column("Terms", overflow="fold")
        table.add_row("Spoiler", str(breakdown.spoiler_score), ", ".join(breakdown.spoiler_terms) or "-")
        table.add_row(
            "Cross-reference", str(breakdown.cross_ref_score), ", ".join(breakdown.cross_reference_terms) or "-"
        )
        table.add_row("Affinity", str(breakdown.affinity_score), ", ".join(breakdown.affinity_terms) or "-")
        console.print(table)
        console.print(result.reasoning)

    @app.command("migrate")
    def migrate() -> None:
        """Apply the SQL migrations bundled with the package."""

        settings = load_settings(console)
        try:
            run_migrations(console, dsn=str(settings.database_url))
        except psycopg2.Error as exc:
            console.print(f"[red]Storage error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.STORAGE_ERROR) from exc

    @app.command("seed-preferences")
    def seed_preferences(
        user: UUID = typer.Option(..., "--user", help="User whose default categories should be created"),
    ) -> None:
        """Create the default category preferences for a user who has none."""

        load_settings(console)
        repository = get_preference_repository()
        try:
            existing = repository.list_for_user(user)
            if existing:
                console.print(f"[yellow]{user} already has {len(existing)} category preferences; nothing seeded.[/yellow]")
                return
            created = repository.seed_defaults(user)
        except RepositoryError as exc:
            console.print(f"[red]Storage error:[/red] {exc}")
            raise typer.Exit(code=PipelineExitCode.STORAGE_ERROR) from exc
        finally:
            close_pool()

        console.print(f"[green]Seeded {len(created)} categories:[/green] {', '.join(p.category_name for p in created)}")


def _render_ingestion_report(console: Console, report: IngestionReport) -> None:
    table = Table(title="Ingestion Summary")
    table.add_column("Categories", overflow="fold")
    table.add_column("Found", justify="right")
    table.add_column("Stored", justify="right")
    table.add_column("Duplicates", justify="right")
    table.add_column("Score-free", justify="right")
    table.add_row(
        ", ".join(report.categories),
        str(report.found),
        str(report.stored),
        str(report.duplicates),
        str(report.score_free),
    )
    console.print(table)

    if report.errors or report.failed_writes:
        failures = Table(title="Failures", border_style="red")
        failures.add_column("Scope")
        failures.add_column("Message", overflow="fold")
        for error in report.errors:
            failures.add_row(f"category {error.category}", error.message)
        for failed in report.failed_writes:
            failures.add_row(f"video {failed.external_id}", failed.message)
        console.print(failures)


def _render_reclassification_report(console: Console, report: ReclassificationReport) -> None:
    if report.selected == 0:
        console.print("[green]Nothing to classify.[/green]")
        return

    console.print(
        f"Selected: {report.selected} | Updated: {report.updated} | Skipped: {report.skipped} | "
        f"Failed: {report.failed} | Score-free: {report.score_free_count}"
    )
    for error in report.errors:
        console.print(f"[red]{error.external_id}:[/red] {error.message}")


__all__ = ["PipelineExitCode", "load_settings", "register"]
