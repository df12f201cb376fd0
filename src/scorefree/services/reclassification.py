"""Batch sweep that classifies stored videos still missing a verdict."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Tuple

from rich.console import Console

from scorefree.config.settings import ConfigurationError, Settings
from scorefree.models.reports import ReclassificationReport, RecordError
from scorefree.models.video import ClassificationResult, VideoRecord
from scorefree.services import VideoStore
from scorefree.services.classifier import TextClassifier
from scorefree.utils.concurrency import settle_in_threads

DEFAULT_BATCH_LIMIT = 50
DEFAULT_WRITE_CONCURRENCY = 4

Update = Tuple[VideoRecord, ClassificationResult]


class ReclassificationJob:
    """Classify pending records in bounded, re-triggerable batches.

    Only records whose classification is ``None`` are selected, so re-running the job is a
    no-op for anything already classified. ``force=True`` re-scores classified records
    instead, which is how rule or weight changes are rolled out.
    """

    def __init__(
        self,
        *,
        store: VideoStore,
        classifier: Optional[TextClassifier] = None,
        console: Optional[Console] = None,
        max_batch: int = DEFAULT_BATCH_LIMIT,
        concurrency: int = DEFAULT_WRITE_CONCURRENCY,
    ) -> None:
        self._store = store
        self._classifier = classifier or TextClassifier()
        self._console = console or Console()
        self._max_batch = max(1, max_batch)
        self._concurrency = max(1, concurrency)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        store: VideoStore,
        console: Optional[Console] = None,
    ) -> "ReclassificationJob":
        return cls(
            store=store,
            classifier=TextClassifier(weights=settings.classifier),
            console=console,
            max_batch=settings.reclassify_batch_limit,
            concurrency=settings.ingest_concurrency,
        )

    async def run_reclassification(
        self,
        batch_limit: Optional[int] = None,
        *,
        force: bool = False,
    ) -> ReclassificationReport:
        """Classify up to ``batch_limit`` records and persist verdicts.

        Parameters
        ----------
        batch_limit:
            Number of records to process; capped at the job's ``max_batch``.
        force:
            Re-score records that already carry a classification.

        Raises
        ------
        ConfigurationError
            If ``batch_limit`` is smaller than one.
        """

        limit = self._max_batch if batch_limit is None else batch_limit
        if limit < 1:
            raise ConfigurationError(f"Batch limit must be at least 1 (got {limit}).")
        limit = min(limit, self._max_batch)

        selector = self._store.list_classified if force else self._store.list_pending
        records = await asyncio.to_thread(selector, limit)
        if not records:
            self._console.log("No videos awaiting classification.")
            return ReclassificationReport()

        results = self._classifier.classify_many((record.title, record.description) for record in records)
        updates: List[Update] = list(zip(records, results))

        report = await self._persist(updates, only_pending=not force)
        style = "yellow" if report.has_failures else "green"
        self._console.log(
            f"[{style}]Reclassification complete:[/{style}] {report.updated} updated, {report.failed} failed, "
            f"{report.skipped} skipped, {report.score_free_count} score-free"
        )
        return report

    async def _persist(self, updates: Sequence[Update], *, only_pending: bool) -> ReclassificationReport:
        def _save(update: Update) -> Optional[VideoRecord]:
            record, result = update
            return self._store.save_classification(record.external_id, result, only_pending=only_pending)

        outcomes = await settle_in_threads(_save, updates, limit=self._concurrency)

        updated = skipped = score_free = 0
        errors: List[RecordError] = []
        for (record, result), outcome in zip(updates, outcomes):
            if isinstance(outcome, Exception):
                errors.append(RecordError(external_id=record.external_id, message=str(outcome) or outcome.__class__.__name__))
                self._console.log(f"[red]Updating {record.external_id} failed:[/red] {outcome}")
            elif outcome is None:
                skipped += 1
            else:
                updated += 1
                if result.is_score_free:
                    score_free += 1

        return ReclassificationReport(
            selected=len(updates),
            updated=updated,
            failed=len(errors),
            skipped=skipped,
            score_free_count=score_free,
            errors=errors,
        )


__all__ = ["DEFAULT_BATCH_LIMIT", "ReclassificationJob"]
