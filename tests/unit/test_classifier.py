"""Tests for the spoiler classifier."""

from __future__ import annotations

import re

import pytest

from scorefree.config.settings import ClassifierWeights
from scorefree.services.classifier import LiteralTerm, PatternTerm, TextClassifier, literal_terms
from tests.unit.fakes import FIXED_NOW, make_record


@pytest.fixture
def classifier(fixed_clock) -> TextClassifier:
    return TextClassifier(clock=fixed_clock)


class TestTerms:
    """Matching behaviour of literal and pattern terms."""

    def test_literal_term_scores_once_regardless_of_repeats(self) -> None:
        term = LiteralTerm("defeat")

        assert term.find("defeat after defeat") == ["defeat"]
        assert term.find("highlights") == []

    def test_pattern_term_reports_every_match(self) -> None:
        term = PatternTerm(re.compile(r"\b\d+-\d+\b"))

        assert term.find("112-108 and later 99-98") == ["112-108", "99-98"]

    def test_literal_terms_are_lowercased_and_deduplicated(self) -> None:
        terms = literal_terms(["Victory", "victory ", "", "Comeback"])

        assert [term.phrase for term in terms] == ["victory", "comeback"]


class TestClassify:
    """Verdict, confidence and reasoning for single inputs."""

    def test_empty_input_is_not_score_free(self, classifier: TextClassifier) -> None:
        result = classifier.classify("", "")

        assert result.is_score_free is False
        assert result.confidence == 50
        assert result.flagged_terms == []
        assert result.reasoning == "Content may contain spoilers. Found 0 score-related terms"

    def test_none_fields_are_treated_as_empty(self, classifier: TextClassifier) -> None:
        assert classifier.classify(None, None) == classifier.classify("", "")

    def test_highlight_compilation_is_score_free(self, classifier: TextClassifier) -> None:
        result = classifier.classify("Amazing buzzer beater highlights compilation", "")

        assert result.is_score_free is True
        assert result.confidence == 50
        assert result.flagged_terms == ["buzzer beater"]
        assert result.reasoning == (
            "Content appears to be score-free highlights. Found 3 positive indicators and 1 potential spoiler terms"
        )

    def test_final_score_in_title_is_a_spoiler(self, classifier: TextClassifier) -> None:
        result = classifier.classify("Lakers defeat Celtics 112-108 in thrilling finish", "")

        assert result.is_score_free is False
        assert result.confidence == 5
        assert result.flagged_terms == ["defeat", "112-108"]

    def test_description_contributes_to_score(self, classifier: TextClassifier) -> None:
        clean = classifier.classify("Amazing highlights", "")
        spoiled = classifier.classify("Amazing highlights", "Recap of last night, final result 3 to 1")

        assert clean.is_score_free is True
        assert spoiled.is_score_free is False
        assert "last night" in spoiled.flagged_terms
        assert "3 to 1" in spoiled.flagged_terms

    def test_breakdown_separates_spoiler_and_cross_reference_terms(self, classifier: TextClassifier) -> None:
        breakdown = classifier.explain("Amazing highlights", "Recap of last night, final result 3 to 1")

        assert "last night" in breakdown.cross_reference_terms
        assert "last night" not in breakdown.spoiler_terms
        assert "3 to 1" in breakdown.spoiler_terms
        assert "3 to 1" not in breakdown.cross_reference_terms
        assert breakdown.flagged_terms == breakdown.spoiler_terms + breakdown.cross_reference_terms

    def test_spoiler_ceiling_overrides_positive_evidence(self, classifier: TextClassifier) -> None:
        title = (
            "amazing incredible spectacular epic insane unbelievable masterclass highlights showcase compilation"
            " final score"
        )
        breakdown = classifier.explain(title)
        result = classifier.classify(title)

        assert breakdown.spoiler_score == 3
        assert breakdown.positive_score > breakdown.negative_score
        assert result.is_score_free is False
        assert result.confidence == 55

    def test_confidence_clamped_to_upper_bound(self, classifier: TextClassifier) -> None:
        result = classifier.classify(
            "amazing incredible spectacular epic insane unbelievable masterclass highlights showcase compilation",
            "top 10 best of greatest clinic",
        )

        assert result.is_score_free is True
        assert result.confidence == 100

    def test_confidence_clamped_to_lower_bound(self, classifier: TextClassifier) -> None:
        result = classifier.classify("final score 3-2 result vs rival last night", "")

        assert result.is_score_free is False
        assert result.confidence == 0

    def test_classification_is_pure(self, classifier: TextClassifier) -> None:
        first = classifier.classify("Lakers vs Celtics", "Game recap", classified_at=FIXED_NOW)
        second = classifier.classify("Lakers vs Celtics", "Game recap", classified_at=FIXED_NOW)

        assert first == second

    def test_classified_at_comes_from_clock(self, classifier: TextClassifier) -> None:
        assert classifier.classify("highlights").classified_at == FIXED_NOW

    def test_custom_weights_change_confidence(self, fixed_clock) -> None:
        weighted = TextClassifier(weights=ClassifierWeights(positive_multiplier=1.0), clock=fixed_clock)

        result = weighted.classify("Amazing buzzer beater highlights compilation")

        assert result.is_score_free is True
        assert result.confidence == 65

    def test_vocabulary_override(self, fixed_clock) -> None:
        custom = TextClassifier(spoiler_phrases=["knockout"], affinity_phrases=["skills"], clock=fixed_clock)

        assert custom.classify("Knockout of the year").is_score_free is False
        assert custom.classify("Boxing skills drill").is_score_free is True


class TestBatchHelpers:
    """Bulk classification and filtering."""

    def test_classify_many_preserves_order_and_shares_timestamp(self, classifier: TextClassifier) -> None:
        results = classifier.classify_many([("Amazing highlights", ""), ("Lakers defeat Celtics 112-108", "")])

        assert [result.is_score_free for result in results] == [True, False]
        assert {result.classified_at for result in results} == {FIXED_NOW}

    def test_filter_score_free_classifies_pending_records(self, classifier: TextClassifier) -> None:
        clean = make_record("aaaaaaaaaaa")
        spoiler = make_record("bbbbbbbbbbb", title="Lakers defeat Celtics 112-108")

        kept = classifier.filter_score_free([clean, spoiler])

        assert [record.external_id for record in kept] == ["aaaaaaaaaaa"]
        assert kept[0].classification is not None
        assert kept[0].classification.confidence == 65

    def test_filter_score_free_respects_existing_verdict(self, classifier: TextClassifier) -> None:
        verdict = classifier.classify("Lakers defeat Celtics 112-108")
        record = make_record("ccccccccccc").with_classification(verdict)

        assert classifier.filter_score_free([record]) == []

    def test_filter_score_free_applies_min_confidence(self, classifier: TextClassifier) -> None:
        record = make_record("ddddddddddd", title="Amazing buzzer beater highlights compilation")

        assert classifier.filter_score_free([record]) == []
        assert len(classifier.filter_score_free([record], min_confidence=50)) == 1
