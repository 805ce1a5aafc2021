"""Step executor: runs exactly one pipeline step against the accumulated history."""

import asyncio
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import lru_cache
from time import perf_counter
from typing import Any, Callable

from research_scanner.exceptions import InvalidStepRequestError, ProviderError
from research_scanner.logging import get_logger
from research_scanner.models import StepResponse, StepResult, StepStatus
from research_scanner.providers import (
    ProviderAdapter,
    get_classification_provider,
    get_reasoning_provider,
    get_search_provider,
)
from research_scanner.scoring import CrossReferenceStrategy, placeholder_cross_references
from research_scanner.steps import FINAL_STEP, ProviderRole, StepDefinition, get_step
from research_scanner.synthesis import build_final_report, citation_count, cross_reference, token_count

log = get_logger("research_scanner.executor")


# --- Parallel join ---


class JoinStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass(frozen=True)
class JoinOutcome:
    """Tagged result of concurrent provider calls that must all be awaited."""

    status: JoinStatus
    payloads: dict[str, dict[str, Any]] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def failed_providers(self) -> list[str]:
        return sorted(self.errors)


async def join_provider_calls(calls: Mapping[str, Awaitable[dict[str, Any]]]) -> JoinOutcome:
    """Await every call; a ``ProviderError`` in one does not cancel the others."""
    payloads: dict[str, dict[str, Any]] = {}
    errors: dict[str, str] = {}

    async def _call_one(role: str, call: Awaitable[dict[str, Any]]) -> None:
        try:
            payloads[role] = await call
        except ProviderError as e:
            log.warning("executor.join.call_failed", provider=role, error=str(e))
            errors[role] = str(e)

    async with asyncio.TaskGroup() as tg:
        for role, call in calls.items():
            tg.create_task(_call_one(role, call))

    if not errors:
        status = JoinStatus.OK
    elif payloads:
        status = JoinStatus.PARTIAL
    else:
        status = JoinStatus.FAILED
    return JoinOutcome(status=status, payloads=payloads, errors=errors)


# --- Executor ---


class StepExecutor:
    """Selects the adapter(s) for a step, sends the step's instructions and wraps the result.

    Adapter failures never escape: they become a ``failed`` (or, for the
    parallel validation step, possibly ``partial``) StepResponse so the caller
    can move on to the next step.
    """

    def __init__(
        self,
        search: ProviderAdapter,
        reasoning: ProviderAdapter,
        classification: ProviderAdapter,
        *,
        cross_reference_strategy: CrossReferenceStrategy = placeholder_cross_references,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._providers: dict[ProviderRole, ProviderAdapter] = {
            ProviderRole.SEARCH: search,
            ProviderRole.REASONING: reasoning,
            ProviderRole.CLASSIFICATION: classification,
        }
        self._cross_reference_strategy = cross_reference_strategy
        self._clock = clock

    async def execute(
        self,
        query: str,
        step: int,
        history: Sequence[StepResult] | None = None,
    ) -> StepResponse:
        """Run step ``step`` for ``query`` given the results of steps 0..step-1.

        Raises:
            InvalidStepRequestError: When the query is blank or the step index is outside 0-4.
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidStepRequestError("query is required")
        definition = get_step(step)
        prior = list(history or [])
        if len(prior) != definition.index:
            log.warning("executor.history_mismatch", step=definition.index, history_length=len(prior))

        start = perf_counter()
        log.info("executor.step.started", step=definition.index, step_key=definition.key, history_length=len(prior))

        if definition.index == FINAL_STEP:
            response = self._final_report(definition, query, prior)
        elif definition.parallel:
            response = await self._run_parallel(definition, query, prior)
        else:
            response = await self._run_single(definition, query, prior)

        log.info(
            "executor.step.completed",
            step=definition.index,
            status=response.status.value,
            duration_ms=int((perf_counter() - start) * 1000),
        )
        return response

    def _respond(
        self,
        definition: StepDefinition,
        prior: list[StepResult],
        *,
        data: dict[str, Any],
        metadata: dict[str, Any],
        status: StepStatus = StepStatus.COMPLETED,
        extra_thoughts: Sequence[str] = (),
    ) -> StepResponse:
        return StepResponse(
            step=definition.index,
            step_name=definition.name,
            service=definition.service,
            status=status,
            data=data,
            previous_data=prior or None,
            next_step=definition.next_step,
            progress=definition.progress,
            ai_thoughts=[*definition.thoughts, *extra_thoughts],
            metadata=metadata,
        )

    def _failed(self, definition: StepDefinition, prior: list[StepResult], errors: dict[str, str]) -> StepResponse:
        log.warning("executor.step.failed", step=definition.index, providers=sorted(errors))
        return self._respond(
            definition,
            prior,
            data={"failed": True, "error": "; ".join(errors.values()), "providers": sorted(errors)},
            metadata={"confidence": 0.0},
            status=StepStatus.FAILED,
            extra_thoughts=definition.error_thoughts(),
        )

    async def _run_single(self, definition: StepDefinition, query: str, prior: list[StepResult]) -> StepResponse:
        role = definition.providers[0]
        context = (prior or None) if definition.index > 0 else None
        try:
            payload = await self._providers[role].invoke(query, definition.instructions[role], context)
        except ProviderError as e:
            return self._failed(definition, prior, {role.value: str(e)})

        metadata = dict(definition.metadata)
        if definition.index == 0:
            metadata = {"sourcesFound": citation_count(payload), "tokensUsed": token_count(payload), **metadata}
        return self._respond(definition, prior, data=payload, metadata=metadata)

    async def _run_parallel(self, definition: StepDefinition, query: str, prior: list[StepResult]) -> StepResponse:
        context = prior or None
        outcome = await join_provider_calls(
            {
                ProviderRole.SEARCH.value: self._providers[ProviderRole.SEARCH].invoke(
                    query, definition.instructions[ProviderRole.SEARCH], None
                ),
                ProviderRole.REASONING.value: self._providers[ProviderRole.REASONING].invoke(
                    query, definition.instructions[ProviderRole.REASONING], context
                ),
            }
        )
        if outcome.status is JoinStatus.FAILED:
            return self._failed(definition, prior, outcome.errors)

        data: dict[str, Any] = {
            "validation": outcome.payloads.get(ProviderRole.SEARCH.value),
            "synthesis": outcome.payloads.get(ProviderRole.REASONING.value),
            "crossReferences": [
                ref.model_dump(by_alias=True) for ref in cross_reference(prior, self._cross_reference_strategy)
            ],
        }
        if outcome.status is JoinStatus.OK:
            return self._respond(definition, prior, data=data, metadata=dict(definition.metadata))

        data.update(failedProviders=outcome.failed_providers, errors=outcome.errors)
        return self._respond(
            definition,
            prior,
            data=data,
            metadata=dict(definition.metadata),
            status=StepStatus.PARTIAL,
            extra_thoughts=[f"⚠️ {role} unavailable, continuing with partial results" for role in outcome.failed_providers],
        )

    def _final_report(self, definition: StepDefinition, query: str, prior: list[StepResult]) -> StepResponse:
        now = self._clock() if self._clock else None
        report = build_final_report(query, prior, now=now)
        metadata = {"totalSources": report.total_sources, "totalTokens": report.total_tokens, **definition.metadata}
        return self._respond(definition, prior, data=report.model_dump(mode="json", by_alias=True), metadata=metadata)


def create_step_executor(
    search: ProviderAdapter | None = None,
    reasoning: ProviderAdapter | None = None,
    classification: ProviderAdapter | None = None,
    *,
    cross_reference_strategy: CrossReferenceStrategy = placeholder_cross_references,
) -> StepExecutor:
    """Uncached factory; any adapter left out comes from the cached production getters."""
    return StepExecutor(
        search or get_search_provider(),
        reasoning or get_reasoning_provider(),
        classification or get_classification_provider(),
        cross_reference_strategy=cross_reference_strategy,
    )


@lru_cache(maxsize=1)
def get_step_executor() -> StepExecutor:
    """Cached getter for production."""
    return create_step_executor()


async def run_step(
    query: str,
    step: int = 0,
    previous_data: Sequence[StepResult] | None = None,
    *,
    executor: StepExecutor | None = None,
) -> StepResponse:
    """Single step transition for callers that drive the five-step loop themselves."""
    return await (executor or get_step_executor()).execute(query, step, previous_data)
