"""Tests for placeholder citation and cross-reference scoring."""

import random

import pytest

from research_scanner.models import StepResult
from research_scanner.scoring import JitteredCitationScorer, clamp, placeholder_cross_references


class _FixedRandom(random.Random):
    """Random whose draws are pinned to one end of the range."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, a: float, b: float) -> float:
        return a + (b - a) * self.value


class TestJitteredCitationScorer:
    @pytest.mark.parametrize("index", range(12))
    def test__scores__stay_within_unit_interval(self, index: int) -> None:
        scorer = JitteredCitationScorer(random.Random(index))

        assert 0.0 <= scorer.relevance(index) <= 1.0
        assert 0.0 <= scorer.trust(index) <= 1.0

    def test__relevance__is_clamped_at_one_for_first_citation(self) -> None:
        scorer = JitteredCitationScorer(_FixedRandom(1.0))
        assert scorer.relevance(0) == 1.0

    def test__relevance__decays_with_rank(self) -> None:
        scorer = JitteredCitationScorer(_FixedRandom(0.5))

        assert scorer.relevance(0) == pytest.approx(1.0)
        assert scorer.relevance(3) == pytest.approx(0.7)

    def test__relevance__has_floor(self) -> None:
        scorer = JitteredCitationScorer(_FixedRandom(0.0))
        assert scorer.relevance(20) == pytest.approx(0.3)

    def test__trust__spans_point_six_to_point_nine(self) -> None:
        assert JitteredCitationScorer(_FixedRandom(0.0)).trust(0) == pytest.approx(0.9)
        assert JitteredCitationScorer(_FixedRandom(1.0)).trust(0) == pytest.approx(0.6)

    def test__seeded_rng__is_reproducible(self) -> None:
        first = JitteredCitationScorer(random.Random(7))
        second = JitteredCitationScorer(random.Random(7))

        assert [first.relevance(i) for i in range(5)] == [second.relevance(i) for i in range(5)]


class TestClamp:
    @pytest.mark.parametrize(("value", "expected"), [(1.5, 1.0), (-0.2, 0.0), (0.42, 0.42)])
    def test__value__is_bounded_to_unit_interval(self, value: float, expected: float) -> None:
        assert clamp(value) == expected


class TestPlaceholderCrossReferences:
    def test__no_history__returns_empty(self) -> None:
        assert placeholder_cross_references([]) == []

    def test__with_history__returns_three_scored_relationships(self) -> None:
        history = [StepResult(step=0, step_name="Initial research", service="Perplexity")]

        refs = placeholder_cross_references(history)

        assert [(ref.type, ref.confidence) for ref in refs] == [
            ("fact_verification", 0.92),
            ("semantic_consistency", 0.88),
            ("classification_accuracy", 0.95),
        ]
        assert refs[0].sources == ["Perplexity", "Gemini"]
