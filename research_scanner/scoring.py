"""Placeholder scoring strategies.

Citation scores and cross-reference confidences are heuristics, not derived
from real signal. They sit behind small interfaces so a genuine analysis can
replace them without touching pipeline control flow.
"""

import random
from collections.abc import Callable, Sequence
from typing import Protocol

from research_scanner.models import CrossReference, StepResult


class CitationScorer(Protocol):
    def relevance(self, index: int) -> float: ...

    def trust(self, index: int) -> float: ...


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class JitteredCitationScorer:
    """Relevance decays by 0.1 per rank with +/-0.1 jitter (floor 0.3); trust is 0.6-0.9."""

    RELEVANCE_FLOOR = 0.3
    RELEVANCE_DECAY = 0.1
    RELEVANCE_JITTER = 0.1
    TRUST_CEILING = 0.9
    TRUST_SPREAD = 0.3
    TRUST_FLOOR = 0.4

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def relevance(self, index: int) -> float:
        jitter = self._rng.uniform(-self.RELEVANCE_JITTER, self.RELEVANCE_JITTER)
        score = max(self.RELEVANCE_FLOOR, 1.0 - index * self.RELEVANCE_DECAY + jitter)
        return clamp(score)

    def trust(self, index: int) -> float:
        score = max(self.TRUST_FLOOR, self.TRUST_CEILING - self._rng.random() * self.TRUST_SPREAD)
        return clamp(score)


CrossReferenceStrategy = Callable[[Sequence[StepResult]], list[CrossReference]]

_PLACEHOLDER_CROSS_REFERENCES = (
    ("fact_verification", 0.92, ("Perplexity", "Gemini"), "Facts confirmed by several sources"),
    ("semantic_consistency", 0.88, ("Gemini", "OpenAI"), "Semantic consistency of the analysis"),
    ("classification_accuracy", 0.95, ("OpenAI", "Perplexity"), "Accuracy of classification and tagging"),
)


def placeholder_cross_references(history: Sequence[StepResult]) -> list[CrossReference]:
    """Fixed catalog of three relationships; empty when there is no history to relate."""
    if not history:
        return []
    return [
        CrossReference(type=kind, confidence=confidence, sources=list(sources), description=description)
        for kind, confidence, sources, description in _PLACEHOLDER_CROSS_REFERENCES
    ]
