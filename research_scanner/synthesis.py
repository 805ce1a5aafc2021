"""Cross-reference synthesis and final report aggregation."""

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from research_scanner.models import CrossReference, FinalReport, ResearchStepSummary, StepResult
from research_scanner.scoring import CrossReferenceStrategy, placeholder_cross_references

DEFAULT_STEP_CONFIDENCE = 0.8

RECOMMENDATIONS = (
    "Further research into the identified trends is recommended",
    "Changes in the key sources should be monitored",
    "Extending the analysis to adjacent topics would be useful",
)


def cross_reference(
    history: Sequence[StepResult],
    strategy: CrossReferenceStrategy = placeholder_cross_references,
) -> list[CrossReference]:
    return strategy(history)


def citation_count(data: dict[str, Any]) -> int:
    citations = data.get("citations")
    return len(citations) if isinstance(citations, list) else 0


def token_count(data: dict[str, Any]) -> int:
    usage = data.get("usage")
    if not isinstance(usage, dict):
        return 0
    tokens = usage.get("total_tokens")
    return tokens if isinstance(tokens, int) and not isinstance(tokens, bool) else 0


def _confidence(result: StepResult) -> float:
    value = result.metadata.get("confidence")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return DEFAULT_STEP_CONFIDENCE


def build_final_report(query: str, history: Sequence[StepResult], *, now: datetime | None = None) -> FinalReport:
    """Aggregate source and token counts plus a per-step summary over ``history``.

    Only top-level ``citations`` and ``usage.total_tokens`` of each payload are
    counted; failed steps contribute their summary line and nothing else. An
    empty history yields a report with zero totals.
    """
    total_sources = 0
    total_tokens = 0
    summaries: list[ResearchStepSummary] = []

    for result in history:
        total_sources += citation_count(result.data)
        total_tokens += token_count(result.data)
        summaries.append(ResearchStepSummary(step=result.step, service=result.service, confidence=_confidence(result)))

    return FinalReport(
        query=query,
        timestamp=(now or datetime.now(timezone.utc)).isoformat(),
        total_sources=total_sources,
        total_tokens=total_tokens,
        research_steps=summaries,
        recommendations=list(RECOMMENDATIONS),
    )
