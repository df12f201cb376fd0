"""Ingestion pass: fetch every enabled category, classify, and store new videos."""

from __future__ import annotations

import asyncio
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.console import Console

from scorefree.config.settings import ConfigurationError, Settings
from scorefree.models.reports import CategoryError, IngestionReport, RecordError
from scorefree.models.video import VideoRecord
from scorefree.services import CategoryFetcher, VideoStore
from scorefree.services.classifier import TextClassifier
from scorefree.utils.concurrency import gather_settled, settle_in_threads

DEFAULT_MAX_RESULTS = 5
DEFAULT_CONCURRENCY = 4


def normalise_categories(categories: Iterable[str]) -> List[str]:
    """Strip blanks and drop case-insensitive duplicates, keeping the first spelling."""

    seen = set()
    ordered: List[str] = []
    for category in categories:
        cleaned = (category or "").strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        ordered.append(cleaned)
    return ordered


class IngestionCoordinator:
    """Drive one ingestion pass across a user's enabled categories.

    Category fetches run concurrently up to ``concurrency``; a failing category is recorded
    in the report and never aborts the pass. Every fetched record is written with
    insert-or-ignore semantics keyed on ``external_id``, so an existing row (and its
    classification) is left untouched by a re-fetch.
    """

    def __init__(
        self,
        *,
        fetcher: CategoryFetcher,
        store: VideoStore,
        classifier: Optional[TextClassifier] = None,
        console: Optional[Console] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
        concurrency: int = DEFAULT_CONCURRENCY,
        classify_inline: bool = True,
        verbose: bool = True,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._classifier = classifier or TextClassifier()
        self._console = console or Console()
        self._max_results = max(1, max_results)
        self._concurrency = max(1, concurrency)
        self._classify_inline = classify_inline
        self._verbose = verbose

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        fetcher: CategoryFetcher,
        store: VideoStore,
        console: Optional[Console] = None,
    ) -> "IngestionCoordinator":
        """Build a coordinator using the limits and classifier weights from ``settings``."""

        return cls(
            fetcher=fetcher,
            store=store,
            classifier=TextClassifier(weights=settings.classifier),
            console=console,
            max_results=settings.max_results_per_category,
            concurrency=settings.ingest_concurrency,
            classify_inline=settings.classify_on_ingest,
            verbose=settings.verbose,
        )

    async def run_ingestion(self, enabled_categories: Iterable[str]) -> IngestionReport:
        """Fetch, deduplicate, classify, and store videos for ``enabled_categories``.

        Raises
        ------
        ConfigurationError
            If no usable category is supplied. Nothing is fetched in that case.
        """

        categories = normalise_categories(enabled_categories)
        if not categories:
            raise ConfigurationError("No enabled categories; enable at least one category before ingesting.")

        candidates, category_errors = await self._fetch_all(categories)
        prepared = [self._prepare(record) for record in candidates]

        stored, failed_writes = await self._write_all(prepared)
        report = IngestionReport(
            categories=categories,
            found=len(candidates),
            stored=len(stored),
            score_free=sum(1 for record in stored if record.classification is not None and record.is_score_free),
            errors=category_errors,
            failed_writes=failed_writes,
        )

        style = "yellow" if report.has_failures else "green"
        self._console.log(
            f"[{style}]Ingestion complete:[/{style}] {report.found} found, {report.stored} stored, "
            f"{len(report.errors)} category errors, {len(report.failed_writes)} failed writes"
        )
        return report

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    async def _fetch_all(self, categories: Sequence[str]) -> Tuple[List[VideoRecord], List[CategoryError]]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _fetch(category: str) -> List[VideoRecord]:
            async with semaphore:
                return await self._fetcher.fetch(category, self._max_results)

        outcomes = await gather_settled(_fetch(category) for category in categories)

        candidates: List[VideoRecord] = []
        errors: List[CategoryError] = []
        for category, outcome in zip(categories, outcomes):
            if isinstance(outcome, Exception):
                message = getattr(outcome, "message", None) or str(outcome) or outcome.__class__.__name__
                errors.append(CategoryError(category=category, message=message))
                self._console.log(f"[red]Fetching {category} failed:[/red] {message}")
                continue

            if self._verbose:
                self._console.log(f"{category}: {len(outcome)} candidate videos")
            candidates.extend(record.model_copy(update={"category": category}) for record in outcome)
        return candidates, errors

    def _prepare(self, record: VideoRecord) -> VideoRecord:
        if not self._classify_inline or record.classification is not None:
            return record
        return record.with_classification(self._classifier.classify_record(record))

    async def _write_all(self, records: Sequence[VideoRecord]) -> Tuple[List[VideoRecord], List[RecordError]]:
        outcomes = await settle_in_threads(self._store.insert_if_absent, records, limit=self._concurrency)

        stored: List[VideoRecord] = []
        failures: List[RecordError] = []
        for record, outcome in zip(records, outcomes):
            if isinstance(outcome, Exception):
                failures.append(RecordError(external_id=record.external_id, message=str(outcome) or outcome.__class__.__name__))
                self._console.log(f"[red]Storing {record.external_id} failed:[/red] {outcome}")
            elif outcome is not None:
                stored.append(outcome)
        return stored, failures


__all__ = ["DEFAULT_CONCURRENCY", "DEFAULT_MAX_RESULTS", "IngestionCoordinator", "normalise_categories"]
