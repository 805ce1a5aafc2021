"""In-process pipeline driver running all five research steps."""

from collections.abc import Awaitable, Callable
from time import perf_counter

from research_scanner.events import SSEEvent, StepCompleteEvent, StepStartEvent, StepWarningEvent, ThoughtEvent
from research_scanner.executor import StepExecutor, get_step_executor
from research_scanner.logging import bind_run_context, get_logger
from research_scanner.models import FinalReport, ResearchRun, StepResult, StepStatus
from research_scanner.steps import STEPS

log = get_logger("research_scanner.workflow")

EventCallback = Callable[[SSEEvent], Awaitable[None]]


async def run_research_workflow(
    query: str,
    *,
    executor: StepExecutor | None = None,
    event_callback: EventCallback | None = None,
) -> ResearchRun:
    """Execute the five research steps strictly in order.

    Each step sees the results of every earlier step. A failed step is
    recorded in the history and the run moves on; the final step always runs.

    Args:
        query: Research query to investigate.
        executor: Override the default step executor (for testing and demo mode).
        event_callback: Receives progress events (for streaming).

    Returns:
        ResearchRun with the full history and the final report.

    Raises:
        InvalidStepRequestError: When the query is blank.
    """
    bind_run_context(query)
    _executor = executor or get_step_executor()

    async def _emit(event: SSEEvent) -> None:
        if event_callback is not None:
            await event_callback(event)

    history: list[StepResult] = []
    workflow_start = perf_counter()
    log.info("workflow.started")

    for definition in STEPS:
        step_start = perf_counter()
        await _emit(
            StepStartEvent(data={"step": definition.index, "stepName": definition.name, "service": definition.service})
        )

        response = await _executor.execute(query, definition.index, tuple(history))
        result = response.to_result()
        history.append(result)

        narration = list(result.ai_thoughts)
        if not result.failed:
            narration.extend(definition.completion_thoughts())
        for thought in narration:
            await _emit(ThoughtEvent(data={"step": result.step, "service": result.service, "thought": thought}))

        if result.status is not StepStatus.COMPLETED:
            await _emit(
                StepWarningEvent(
                    data={
                        "step": result.step,
                        "status": result.status.value,
                        "warning": f"{definition.name} {result.status.value}, moving on to the next step",
                    }
                )
            )
        duration_ms = int((perf_counter() - step_start) * 1000)
        await _emit(
            StepCompleteEvent(
                data={
                    "step": result.step,
                    "status": result.status.value,
                    "progress": result.progress,
                    "duration_ms": duration_ms,
                }
            )
        )

    failed_steps = [result.step for result in history if result.failed]
    total_ms = int((perf_counter() - workflow_start) * 1000)
    log.info("workflow.completed", total_ms=total_ms, failed_steps=failed_steps)

    return ResearchRun(
        query=query,
        steps=history,
        final_report=FinalReport.model_validate(history[-1].data),
        failed_steps=failed_steps,
        total_ms=total_ms,
    )
