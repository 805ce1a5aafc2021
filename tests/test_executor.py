"""Tests for the step executor."""

import pytest

from research_scanner.exceptions import InvalidStepRequestError
from research_scanner.executor import JoinStatus, StepExecutor, join_provider_calls, run_step
from research_scanner.models import StepResult, StepStatus
from research_scanner.steps import STEPS
from tests.conftest import FakeProvider, make_executor

PROGRESS = {0: 20, 1: 40, 2: 65, 3: 85, 4: 100}


async def _history_up_to(executor: StepExecutor, query: str, step: int) -> list[StepResult]:
    history: list[StepResult] = []
    for index in range(step):
        response = await executor.execute(query, index, history)
        history.append(response.to_result())
    return history


class TestStepWrapping:
    """Wrapping metadata for every step index."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", [0, 1, 2, 3, 4])
    async def test__each_step__has_fixed_progress_and_next_step(self, step: int) -> None:
        executor = make_executor()[0]
        history = await _history_up_to(executor, "climate policy", step)

        response = await executor.execute("climate policy", step, history)

        assert response.step == step
        assert response.progress == PROGRESS[step]
        assert response.next_step == (step + 1 if step < 4 else None)
        assert response.step_name == STEPS[step].name
        assert response.service == STEPS[step].service
        assert response.status is StepStatus.COMPLETED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", [0, 1, 2, 3, 4])
    async def test__same_inputs__produce_same_wrapping(self, step: int) -> None:
        executor = make_executor()[0]
        history = await _history_up_to(executor, "climate policy", step)

        first = await executor.execute("climate policy", step, history)
        second = await executor.execute("climate policy", step, history)

        assert (first.step, first.step_name, first.service, first.progress) == (
            second.step,
            second.step_name,
            second.service,
            second.progress,
        )
        assert first.ai_thoughts == second.ai_thoughts

    @pytest.mark.asyncio
    async def test__thoughts__are_static_per_step(self, executor: StepExecutor) -> None:
        response = await executor.execute("climate policy", 0)
        assert response.ai_thoughts == list(STEPS[0].thoughts)

    @pytest.mark.asyncio
    async def test__previous_data__echoes_history(self, executor: StepExecutor) -> None:
        first = await executor.execute("climate policy", 0)
        assert first.previous_data is None

        second = await executor.execute("climate policy", 1, [first.to_result()])
        assert second.previous_data is not None
        assert [r.step for r in second.previous_data] == [0]


class TestSingleProviderSteps:
    """Steps 0-2 call exactly one adapter."""

    @pytest.mark.asyncio
    async def test__step_0__calls_search_without_context(self) -> None:
        executor, search, reasoning, classification = make_executor()

        response = await executor.execute("climate policy", 0)

        assert len(search.calls) == 1
        assert search.calls[0]["context"] is None
        assert search.calls[0]["query"] == "climate policy"
        assert not reasoning.calls and not classification.calls
        assert response.metadata == {"sourcesFound": 5, "tokensUsed": 120, "confidence": 0.75}

    @pytest.mark.asyncio
    async def test__step_1__passes_full_history_to_reasoning(self) -> None:
        executor, _, reasoning, _ = make_executor()
        history = await _history_up_to(executor, "climate policy", 1)

        await executor.execute("climate policy", 1, history)

        assert reasoning.calls[0]["context"] == history
        assert "second-level analyst" in reasoning.calls[0]["instruction"]

    @pytest.mark.asyncio
    async def test__step_2__calls_classification_with_history(self) -> None:
        executor, _, _, classification = make_executor()
        history = await _history_up_to(executor, "climate policy", 2)

        response = await executor.execute("climate policy", 2, history)

        assert len(classification.calls) == 1
        assert [r.step for r in classification.calls[0]["context"]] == [0, 1]
        assert response.metadata["tagsGenerated"] == 25

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "step,failing",
        [(0, "search_fail"), (1, "reasoning_fail"), (2, "classification_fail")],
    )
    async def test__adapter_failure__produces_failed_step(self, step: int, failing: str) -> None:
        executor = make_executor(**{failing: True})[0]
        history = [StepResult(step=i, step_name="s", service="x") for i in range(step)]

        response = await executor.execute("climate policy", step, history)

        assert response.status is StepStatus.FAILED
        assert response.failed
        assert response.data["failed"] is True
        assert "503" in response.data["error"]
        assert response.progress == PROGRESS[step]
        assert response.next_step == step + 1
        assert response.ai_thoughts[-1] == "🔄 Moving on to the next step..."
        assert response.metadata == {"confidence": 0.0}


class TestValidationStep:
    """Step 3 joins two concurrent calls."""

    @pytest.mark.asyncio
    async def test__both_succeed__bundles_payloads(self) -> None:
        executor, search, reasoning, _ = make_executor()
        history = await _history_up_to(executor, "climate policy", 3)
        search.calls.clear()
        reasoning.calls.clear()

        response = await executor.execute("climate policy", 3, history)

        assert response.status is StepStatus.COMPLETED
        assert set(response.data) == {"validation", "synthesis", "crossReferences"}
        assert len(response.data["crossReferences"]) == 3
        assert search.calls[0]["context"] is None
        assert reasoning.calls[0]["context"] == history
        assert response.metadata["finalConfidence"] == 0.95

    @pytest.mark.asyncio
    async def test__reasoning_fails__keeps_validation_as_partial(self) -> None:
        executor = make_executor(reasoning_fail=True)[0]
        history = [StepResult(step=i, step_name="s", service="x") for i in range(3)]

        response = await executor.execute("climate policy", 3, history)

        assert response.status is StepStatus.PARTIAL
        assert response.data["validation"]["citations"]
        assert response.data["synthesis"] is None
        assert response.data["failedProviders"] == ["reasoning-provider"]
        assert response.next_step == 4

    @pytest.mark.asyncio
    async def test__search_fails__keeps_synthesis_as_partial(self) -> None:
        executor = make_executor(search_fail=True)[0]
        history = [StepResult(step=i, step_name="s", service="x") for i in range(3)]

        response = await executor.execute("climate policy", 3, history)

        assert response.status is StepStatus.PARTIAL
        assert response.data["validation"] is None
        assert response.data["synthesis"]["candidates"]
        assert response.data["failedProviders"] == ["search-provider"]

    @pytest.mark.asyncio
    async def test__both_fail__produces_failed_step(self) -> None:
        executor = make_executor(search_fail=True, reasoning_fail=True)[0]

        response = await executor.execute("climate policy", 3, [])

        assert response.status is StepStatus.FAILED
        assert response.data["providers"] == ["reasoning-provider", "search-provider"]

    @pytest.mark.asyncio
    async def test__empty_history__has_no_cross_references(self, executor: StepExecutor) -> None:
        response = await executor.execute("climate policy", 3, [])
        assert response.data["crossReferences"] == []


class TestFinalReportStep:
    """Step 4 aggregates locally."""

    @pytest.mark.asyncio
    async def test__final_step__makes_no_provider_calls(self) -> None:
        executor, search, reasoning, classification = make_executor()

        response = await executor.execute("climate policy", 4, [])

        assert not search.calls and not reasoning.calls and not classification.calls
        assert response.data["totalSources"] == 0
        assert response.data["totalTokens"] == 0
        assert response.metadata == {"totalSources": 0, "totalTokens": 0, "researchQuality": 0.98}

    @pytest.mark.asyncio
    async def test__final_step__summarizes_each_prior_step(self, executor: StepExecutor) -> None:
        history = await _history_up_to(executor, "climate policy", 4)

        response = await executor.execute("climate policy", 4, history)

        assert len(response.data["researchSteps"]) == 4
        assert response.data["totalSources"] == 5
        assert response.data["totalTokens"] == 200


class TestInputErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", [-1, 5, 42])
    async def test__step_out_of_range__raises(self, executor: StepExecutor, step: int) -> None:
        with pytest.raises(InvalidStepRequestError):
            await executor.execute("climate policy", step)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test__blank_query__raises(self, executor: StepExecutor, query: str) -> None:
        with pytest.raises(InvalidStepRequestError, match="query is required"):
            await executor.execute(query, 0)


class TestJoinProviderCalls:
    @pytest.mark.asyncio
    async def test__all_succeed__is_ok(self) -> None:
        a = FakeProvider("a", "A", {"x": 1})
        b = FakeProvider("b", "B", {"y": 2})

        outcome = await join_provider_calls({"a": a.invoke("q", "i"), "b": b.invoke("q", "i")})

        assert outcome.status is JoinStatus.OK
        assert outcome.payloads == {"a": {"x": 1}, "b": {"y": 2}}
        assert outcome.failed_providers == []

    @pytest.mark.asyncio
    async def test__one_fails__is_partial_and_other_still_runs(self) -> None:
        a = FakeProvider("a", "A", fail=True)
        b = FakeProvider("b", "B", {"y": 2})

        outcome = await join_provider_calls({"a": a.invoke("q", "i"), "b": b.invoke("q", "i")})

        assert outcome.status is JoinStatus.PARTIAL
        assert outcome.payloads == {"b": {"y": 2}}
        assert outcome.failed_providers == ["a"]
        assert len(b.calls) == 1

    @pytest.mark.asyncio
    async def test__unexpected_error__propagates(self) -> None:
        async def _boom() -> dict:
            raise RuntimeError("bug")

        with pytest.raises(ExceptionGroup):
            await join_provider_calls({"a": _boom()})


class TestRunStep:
    @pytest.mark.asyncio
    async def test__run_step__delegates_to_executor(self, executor: StepExecutor) -> None:
        response = await run_step("climate policy", 0, None, executor=executor)
        assert response.step == 0
        assert response.progress == 20

    @pytest.mark.asyncio
    async def test__provider_error__never_escapes(self) -> None:
        executor = make_executor(search_fail=True, reasoning_fail=True, classification_fail=True)[0]
        history: list[StepResult] = []
        for step in range(5):
            response = await run_step("climate policy", step, history, executor=executor)
            history.append(response.to_result())
        assert [r.status for r in history[:4]] == [StepStatus.FAILED] * 4
        assert history[4].status is StepStatus.COMPLETED
