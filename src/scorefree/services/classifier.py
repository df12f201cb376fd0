"""Deterministic spoiler classifier for sports video titles and descriptions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple, TypeVar, Union

from scorefree.config.settings import ClassifierWeights
from scorefree.models.video import ClassificationResult, VideoRecord

Clock = Callable[[], datetime]
RecordT = TypeVar("RecordT", bound=VideoRecord)

DEFAULT_MIN_CONFIDENCE = 60


@dataclass(frozen=True, slots=True)
class LiteralTerm:
    """A phrase that scores once when it appears anywhere in the normalised text."""

    phrase: str
    weight: int = 1

    def find(self, text: str) -> List[str]:
        return [self.phrase] if self.phrase in text else []


@dataclass(frozen=True, slots=True)
class PatternTerm:
    """A regular expression that scores once per non-overlapping match."""

    regex: Pattern[str]
    weight: int = 2

    def find(self, text: str) -> List[str]:
        return [match.group(0) for match in self.regex.finditer(text)]


Term = Union[LiteralTerm, PatternTerm]


# Outcome and result vocabulary. Bare "at" and "@" are not listed: as
# substrings they fire inside ordinary words ("compilation", "beater", "rating").
SPOILER_PHRASES: Tuple[str, ...] = (
    "final score",
    "final result",
    "ends",
    "finished",
    "concluded",
    "victory",
    "defeat",
    "winner",
    "loser",
    "champion",
    "championship game",
    "game over",
    "overtime",
    "sudden death",
    "beats",
    "defeated",
    "crushed",
    "dominated",
    "upset",
    "blowout",
    "shutout",
    "comeback",
    "rally",
    "lead",
    "behind",
    "ahead",
    "winning",
    "losing",
    "fourth quarter",
    "final quarter",
    "final period",
    "final inning",
    "final set",
    "match point",
    "game point",
    "buzzer beater",
    "walk-off",
    "penalty shootout",
    "vs",
    "versus",
    "against",
    "v.",
    "final",
    "result",
    "score",
    "points",
    "goals",
    "runs",
    "touchdowns",
)

SCORE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"\b\d+[-–—]\d+\b"),
    re.compile(r"\b\d+\s*:\s*\d+\b"),
    re.compile(r"\b\d+\s+to\s+\d+\b", re.IGNORECASE),
)

CROSS_REFERENCE_PHRASES: Tuple[str, ...] = (
    "last week",
    "previous game",
    "earlier today",
    "yesterday",
    "last night",
    "this weekend",
    "playoff",
    "playoffs",
    "tournament",
    "bracket",
    "standings",
    "ranking",
    "season",
    "record",
    "stats",
    "statistics",
)

AFFINITY_PHRASES: Tuple[str, ...] = (
    "highlights",
    "best plays",
    "amazing",
    "incredible",
    "spectacular",
    "skills",
    "talent",
    "technique",
    "moves",
    "plays",
    "moments",
    "compilation",
    "top 10",
    "best of",
    "greatest",
    "epic",
    "insane",
    "unbelievable",
    "masterclass",
    "clinic",
    "showcase",
)


def literal_terms(phrases: Iterable[str], *, weight: int = 1) -> Tuple[LiteralTerm, ...]:
    """Build lower-cased literal terms, dropping blanks and duplicates."""

    cleaned = (phrase.strip().lower() for phrase in phrases)
    return tuple(LiteralTerm(phrase, weight) for phrase in dict.fromkeys(cleaned) if phrase)


def pattern_terms(patterns: Iterable[Pattern[str]], *, weight: int = 2) -> Tuple[PatternTerm, ...]:
    return tuple(PatternTerm(pattern, weight) for pattern in patterns)


@dataclass(slots=True)
class ClassificationBreakdown:
    """Intermediate tallies behind a verdict, exposed for debugging and the ``classify`` command."""

    spoiler_score: int = 0
    cross_ref_score: int = 0
    affinity_score: int = 0
    positive_score: float = 0.0
    negative_score: float = 0.0
    flagged_terms: List[str] = field(default_factory=list)
    spoiler_terms: List[str] = field(default_factory=list)
    cross_reference_terms: List[str] = field(default_factory=list)
    affinity_terms: List[str] = field(default_factory=list)


def _tally(terms: Sequence[Term], text: str, sink: List[str]) -> int:
    units = 0
    for term in terms:
        matches = term.find(text)
        if matches:
            sink.extend(matches)
            units += len(matches) * term.weight
    return units


def normalise_text(title: Optional[str], description: Optional[str]) -> str:
    """Join title and description and lower-case them for matching."""

    return f"{title or ''} {description or ''}".lower()


class TextClassifier:
    """Score video metadata for spoiler risk using fixed term sets.

    The verdict is a pure function of the text and the configured weights. Only
    ``classified_at`` depends on the injected clock; pass ``classified_at`` explicitly to
    :meth:`classify` when byte-identical results are required.

    Parameters
    ----------
    weights:
        Scoring constants; ``ClassifierWeights()`` when omitted.
    spoiler_phrases, cross_reference_phrases, affinity_phrases:
        Optional vocabulary overrides. Score patterns are always applied.
    clock:
        Callable returning the current UTC time for ``classified_at``.
    """

    def __init__(
        self,
        *,
        weights: Optional[ClassifierWeights] = None,
        spoiler_phrases: Optional[Iterable[str]] = None,
        cross_reference_phrases: Optional[Iterable[str]] = None,
        affinity_phrases: Optional[Iterable[str]] = None,
        score_patterns: Optional[Iterable[Pattern[str]]] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._weights = weights or ClassifierWeights()
        self._spoiler_terms: Tuple[Term, ...] = literal_terms(
            SPOILER_PHRASES if spoiler_phrases is None else spoiler_phrases,
            weight=self._weights.literal_weight,
        ) + pattern_terms(
            SCORE_PATTERNS if score_patterns is None else score_patterns,
            weight=self._weights.pattern_weight,
        )
        self._cross_reference_terms: Tuple[Term, ...] = literal_terms(
            CROSS_REFERENCE_PHRASES if cross_reference_phrases is None else cross_reference_phrases,
            weight=self._weights.cross_reference_weight,
        )
        self._affinity_terms: Tuple[Term, ...] = literal_terms(
            AFFINITY_PHRASES if affinity_phrases is None else affinity_phrases,
            weight=self._weights.affinity_weight,
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def weights(self) -> ClassifierWeights:
        return self._weights

    def explain(self, title: Optional[str], description: Optional[str] = "") -> ClassificationBreakdown:
        """Return the per-set tallies for ``title`` and ``description``."""

        text = normalise_text(title, description)
        spoiler_matches: List[str] = []
        cross_ref_matches: List[str] = []
        affinity_matches: List[str] = []

        spoiler_score = _tally(self._spoiler_terms, text, spoiler_matches)
        cross_ref_score = _tally(self._cross_reference_terms, text, cross_ref_matches)
        affinity_score = _tally(self._affinity_terms, text, affinity_matches)

        return ClassificationBreakdown(
            spoiler_score=spoiler_score,
            cross_ref_score=cross_ref_score,
            affinity_score=affinity_score,
            positive_score=affinity_score * self._weights.positive_multiplier,
            negative_score=(spoiler_score + cross_ref_score) * self._weights.negative_multiplier,
            flagged_terms=list(dict.fromkeys(spoiler_matches + cross_ref_matches)),
            spoiler_terms=list(dict.fromkeys(spoiler_matches)),
            cross_reference_terms=list(dict.fromkeys(cross_ref_matches)),
            affinity_terms=list(dict.fromkeys(affinity_matches)),
        )

    def classify(
        self,
        title: Optional[str],
        description: Optional[str] = "",
        *,
        classified_at: Optional[datetime] = None,
    ) -> ClassificationResult:
        """Classify a single title/description pair.

        Empty input scores zero on both sides, and because the verdict requires positive
        evidence to strictly outweigh negative evidence it defaults to a possible spoiler.
        """

        breakdown = self.explain(title, description)
        weights = self._weights

        is_score_free = (
            breakdown.positive_score > breakdown.negative_score
            and breakdown.spoiler_score < weights.spoiler_ceiling
        )

        confidence = weights.base_confidence
        confidence += breakdown.positive_score * weights.positive_confidence_step
        confidence -= breakdown.negative_score * weights.negative_confidence_step
        clamped = max(0, min(100, int(round(confidence))))

        return ClassificationResult(
            is_score_free=is_score_free,
            confidence=clamped,
            flagged_terms=breakdown.flagged_terms,
            reasoning=self._reasoning(is_score_free, breakdown),
            classified_at=classified_at or self._clock(),
        )

    def classify_record(self, record: VideoRecord) -> ClassificationResult:
        return self.classify(record.title, record.description)

    def classify_many(self, items: Iterable[Tuple[str, str]]) -> List[ClassificationResult]:
        """Classify ``(title, description)`` pairs, preserving input order.

        All results in one call share a single ``classified_at`` timestamp.
        """

        classified_at = self._clock()
        return [self.classify(title, description, classified_at=classified_at) for title, description in items]

    def filter_score_free(
        self,
        records: Iterable[RecordT],
        *,
        min_confidence: int = DEFAULT_MIN_CONFIDENCE,
    ) -> List[RecordT]:
        """Return records judged score-free with at least ``min_confidence``.

        Records that already carry a classification are judged by it; pending records are
        classified on the fly and returned with the verdict attached.
        """

        kept: List[RecordT] = []
        for record in records:
            result = record.classification or self.classify_record(record)
            if result.is_score_free and result.confidence >= min_confidence:
                kept.append(record if record.classification else record.with_classification(result))
        return kept

    @staticmethod
    def _reasoning(is_score_free: bool, breakdown: ClassificationBreakdown) -> str:
        total_flags = breakdown.spoiler_score + breakdown.cross_ref_score
        if is_score_free:
            reasoning = f"Content appears to be score-free highlights. Found {breakdown.affinity_score} positive indicators"
            if total_flags > 0:
                reasoning += f" and {total_flags} potential spoiler terms"
            return reasoning

        reasoning = f"Content may contain spoilers. Found {breakdown.spoiler_score} score-related terms"
        if breakdown.cross_ref_score > 0:
            reasoning += f" and {breakdown.cross_ref_score} other game references"
        return reasoning


__all__ = [
    "AFFINITY_PHRASES",
    "CROSS_REFERENCE_PHRASES",
    "ClassificationBreakdown",
    "LiteralTerm",
    "PatternTerm",
    "SCORE_PATTERNS",
    "SPOILER_PHRASES",
    "Term",
    "TextClassifier",
    "literal_terms",
    "normalise_text",
    "pattern_terms",
]
