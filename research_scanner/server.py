"""FastAPI application exposing the research orchestrator."""

import asyncio
from typing import AsyncIterator

import structlog
from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from research_scanner import __version__
from research_scanner.demo import get_demo_step_executor, is_demo_mode_allowed
from research_scanner.events import CompleteEvent, ErrorEvent, SSEEvent
from research_scanner.exceptions import InvalidStepRequestError, ProviderError, ResearchPipelineError
from research_scanner.executor import StepExecutor, run_step
from research_scanner.models import ResearchRun, RunRequest, StepRequest, StepResponse
from research_scanner.workflow import run_research_workflow

log = structlog.get_logger("research_scanner.server")

# SSE Configuration
HEARTBEAT_INTERVAL = 30  # seconds
MAX_DURATION = 600  # seconds
MAX_QUEUE_SIZE = 100

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


# --- Response schemas ---


class ErrorResponse(BaseModel):
    """Structured error response."""

    error: str = Field(description="User-facing message, safe to display as is", examples=["Query is required"])
    detail: str = Field(
        description="Longer explanation, naming the offending field where there is one",
        examples=["query: Query is required"],
    )
    error_type: str = Field(
        description="Error type (ValidationError, InvalidStepRequestError, ProviderError, InternalServerError)",
        examples=["ValidationError"],
    )


class HealthResponse(BaseModel):
    status: str = Field(examples=["ok"])
    version: str = Field(default="", examples=["0.1.0"])


# --- Exception handlers ---

_SAFE_ERROR_MESSAGES: dict[str, str] = {
    "ProviderError": "An upstream AI provider is unavailable. Please try again.",
}
_GENERIC_ERROR_MESSAGE = "An error occurred processing your request."


def _format_validation_error(exc: RequestValidationError) -> tuple[str, str]:
    """First message on its own, and every message prefixed with its field."""
    messages: list[str] = []
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        messages.append(message)
        parts.append(f"{location}: {message}" if location else message)
    if not messages:
        return "Malformed request", "Malformed request"
    return messages[0], "; ".join(parts)


async def _handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    message, detail = _format_validation_error(exc)
    log.warning("request.validation_error", detail=detail)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error=message, detail=detail, error_type="ValidationError").model_dump(),
    )


async def _handle_pipeline_error(request: Request, exc: ResearchPipelineError) -> JSONResponse:
    error_type = type(exc).__name__
    log.warning("request.pipeline_error", error_type=error_type, detail=str(exc))
    if isinstance(exc, InvalidStepRequestError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=exc.reason, detail=str(exc), error_type=error_type).model_dump(),
        )
    status_code = status.HTTP_502_BAD_GATEWAY if isinstance(exc, ProviderError) else status.HTTP_500_INTERNAL_SERVER_ERROR
    message = _SAFE_ERROR_MESSAGES.get(error_type, _GENERIC_ERROR_MESSAGE)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=message, error_type=error_type).model_dump(),
    )


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unexpected_error", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="An unexpected error occurred.",
            detail="An unexpected error occurred.",
            error_type="InternalServerError",
        ).model_dump(),
    )


def _resolve_executor(demo: bool, endpoint: str, query: str) -> StepExecutor | None:
    if not demo:
        return None
    if not is_demo_mode_allowed():
        raise HTTPException(status_code=403, detail="Demo mode not available in this environment")
    log.warning("demo_mode_active", query=query, endpoint=endpoint)
    return get_demo_step_executor()


# --- App factory ---


def get_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="Research Scanner",
        description="""
Multi-step AI research orchestrator.

## Pipeline

| step | name | providers | progress |
|---|---|---|---|
| 0 | Initial research | Perplexity | 20 |
| 1 | Deep analysis | Gemini | 40 |
| 2 | Classification and tagging | OpenAI | 65 |
| 3 | Synthesis and validation | Perplexity + Gemini (parallel) | 85 |
| 4 | Final report | local aggregation | 100 |

Each step receives the results of every earlier step. A failed provider call
marks its step as failed and the pipeline moves on; the final report is
always produced.
        """,
        version=__version__,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=CORS_ALLOWED_HEADERS,
    )
    application.add_exception_handler(RequestValidationError, _handle_request_validation_error)  # type: ignore[arg-type]
    application.add_exception_handler(ResearchPipelineError, _handle_pipeline_error)  # type: ignore[arg-type]
    application.add_exception_handler(Exception, _handle_unexpected_error)

    error_responses: dict[int | str, dict[str, object]] = {
        400: {"description": "Malformed request (missing query, step outside 0-4)", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    }

    @application.post(
        "/research",
        response_model=StepResponse,
        response_model_by_alias=True,
        status_code=status.HTTP_200_OK,
        summary="Execute One Research Step",
        description="""
Runs exactly one pipeline step. The caller threads `previousData` forward:
call with `step=0` and no history, then with `step=i` and the results of
steps `0..i-1`, until `nextStep` is null. The service keeps no state between
calls.
        """,
        tags=["Research"],
        responses=error_responses,
    )
    async def research_step(
        body: StepRequest,
        demo: bool = Query(default=False, description="Use offline fixture providers"),
    ) -> StepResponse:
        executor = _resolve_executor(demo, "/research", body.query)
        return await run_step(body.query, body.step, body.previous_data, executor=executor)

    @application.post(
        "/research/run",
        response_model=ResearchRun,
        response_model_by_alias=True,
        status_code=status.HTTP_200_OK,
        summary="Execute All Research Steps",
        description="Runs steps 0-4 in-process and returns the whole history with the final report.",
        tags=["Research"],
        responses=error_responses,
    )
    async def research_run(
        body: RunRequest,
        demo: bool = Query(default=False, description="Use offline fixture providers"),
    ) -> ResearchRun:
        executor = _resolve_executor(demo, "/research/run", body.query)
        return await run_research_workflow(body.query, executor=executor)

    @application.post(
        "/research/stream",
        response_class=StreamingResponse,
        responses={
            200: {
                "description": "Server-Sent Events stream of research progress",
                "content": {"text/event-stream": {"example": "event: step_complete\ndata: {...}\n\n"}},
            },
            400: {"model": ErrorResponse},
        },
        summary="Execute all research steps with streaming progress",
        description="""
**Event Types:**
- `step_start`: a step is about to call its providers
- `thought`: one narration line for the step
- `step_warning`: the step failed or degraded; the run continues
- `step_complete`: the step's result was recorded
- `complete`: final ResearchRun
- `error`: the run aborted unexpectedly
- heartbeat comment (`: keepalive`) every 30s

The stream closes after the run completes or after 10 minutes.
        """,
        tags=["Research"],
    )
    async def research_stream(
        request: Request,
        body: RunRequest,
        demo: bool = Query(default=False, description="Use offline fixture providers"),
    ) -> StreamingResponse:
        executor = _resolve_executor(demo, "/research/stream", body.query)

        async def event_generator() -> AsyncIterator[str]:
            event_queue: asyncio.Queue[SSEEvent] = asyncio.Queue(maxsize=MAX_QUEUE_SIZE)
            workflow_complete = asyncio.Event()

            async def event_callback(event: SSEEvent) -> None:
                try:
                    await asyncio.wait_for(event_queue.put(event), timeout=5.0)
                except asyncio.TimeoutError:
                    log.warning("event_queue_full", event=event.event)

            async def run_workflow_task() -> None:
                try:
                    run = await run_research_workflow(body.query, executor=executor, event_callback=event_callback)
                    await event_queue.put(CompleteEvent(data=run.model_dump(mode="json", by_alias=True)))
                except Exception as e:
                    log.error("workflow_error", error=str(e), exc_info=True)
                    error_type = type(e).__name__
                    await event_queue.put(
                        ErrorEvent(
                            data={
                                "error": _SAFE_ERROR_MESSAGES.get(error_type, _GENERIC_ERROR_MESSAGE),
                                "error_type": error_type,
                            }
                        )
                    )
                finally:
                    workflow_complete.set()

            workflow_task = asyncio.create_task(run_workflow_task())

            loop = asyncio.get_running_loop()
            start_time = loop.time()
            next_heartbeat = start_time + HEARTBEAT_INTERVAL

            try:
                while not workflow_complete.is_set() or not event_queue.empty():
                    current_time = loop.time()
                    elapsed = current_time - start_time

                    if elapsed > MAX_DURATION:
                        log.warning("stream_timeout", elapsed=elapsed, max=MAX_DURATION)
                        workflow_task.cancel()
                        yield ErrorEvent(
                            data={"error": "Research timeout - run exceeded the time limit", "error_type": "TimeoutError"}
                        ).format()
                        break

                    if await request.is_disconnected():
                        log.info("client_disconnected", elapsed=elapsed)
                        workflow_task.cancel()
                        break

                    if current_time >= next_heartbeat:
                        yield ": keepalive\n\n"
                        next_heartbeat += HEARTBEAT_INTERVAL

                    try:
                        event = await asyncio.wait_for(event_queue.get(), timeout=0.1)
                        yield event.format()
                    except asyncio.TimeoutError:
                        continue
            finally:
                workflow_task.cancel()
                try:
                    await asyncio.wait_for(workflow_task, timeout=10.0)
                except asyncio.CancelledError:
                    log.info("workflow_cancelled")
                except asyncio.TimeoutError:
                    log.error("workflow_cancellation_timeout")

        return StreamingResponse(event_generator(), media_type="text/event-stream", headers=SSE_HEADERS)

    @application.get("/health", response_model=HealthResponse, summary="Health Check", tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    @application.get("/health/liveness", response_model=HealthResponse, summary="Liveness Probe", tags=["Health"])
    async def liveness() -> HealthResponse:
        return HealthResponse(status="alive")

    @application.get("/health/readiness", response_model=HealthResponse, summary="Readiness Probe", tags=["Health"])
    async def readiness() -> HealthResponse:
        return HealthResponse(status="ready")

    return application


app = get_app()
