"""SSE event models for streaming a five-step research run."""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SSEEventType(str, Enum):
    """SSE event types for the research driver."""

    STEP_START = "step_start"
    THOUGHT = "thought"
    STEP_COMPLETE = "step_complete"
    STEP_WARNING = "step_warning"
    HEARTBEAT = "heartbeat"
    COMPLETE = "complete"
    ERROR = "error"


class SSEEvent(BaseModel):
    """Base SSE event model."""

    event: SSEEventType = Field(description="Event type identifier")
    data: dict[str, Any] = Field(description="Event payload data")

    def format(self) -> str:
        """Format as SSE message: 'event: type\\ndata: json\\n\\n'."""
        return f"event: {self.event.value}\ndata: {json.dumps(self.data, ensure_ascii=False)}\n\n"


class StepStartEvent(SSEEvent):
    """Emitted before a step's provider call(s) are issued."""

    event: SSEEventType = SSEEventType.STEP_START
    data: dict[str, Any] = Field(
        description="Step identity",
        examples=[{"step": 0, "stepName": "Initial research", "service": "Perplexity"}],
    )


class ThoughtEvent(SSEEvent):
    """One narration line for the presentation layer."""

    event: SSEEventType = SSEEventType.THOUGHT
    data: dict[str, Any] = Field(
        examples=[{"step": 0, "service": "Perplexity", "thought": "🔍 Analyzing the user's query..."}],
    )


class StepCompleteEvent(SSEEvent):
    """Emitted once a step's result has been appended to the history."""

    event: SSEEventType = SSEEventType.STEP_COMPLETE
    data: dict[str, Any] = Field(
        description="Step completion details",
        examples=[{"step": 0, "status": "completed", "progress": 20, "duration_ms": 4200}],
    )


class StepWarningEvent(SSEEvent):
    """Emitted when a step failed or degraded; the run continues."""

    event: SSEEventType = SSEEventType.STEP_WARNING
    data: dict[str, Any] = Field(
        examples=[
            {
                "step": 3,
                "status": "partial",
                "warning": "reasoning-provider failed, continuing with partial results",
            }
        ],
    )


class HeartbeatEvent(SSEEvent):
    """Keep-alive sent as an SSE comment so clients need no handler for it."""

    event: SSEEventType = SSEEventType.HEARTBEAT
    data: dict[str, Any] = Field(default_factory=dict)

    def format(self) -> str:
        return ": keepalive\n\n"


class CompleteEvent(SSEEvent):
    """Emitted when all five steps have run."""

    event: SSEEventType = SSEEventType.COMPLETE
    data: dict[str, Any] = Field(
        description="Full ResearchRun serialized",
        examples=[
            {
                "query": "climate policy",
                "steps": [],
                "finalReport": {"totalSources": 5, "totalTokens": 200},
                "failedSteps": [],
                "totalMs": 18500,
            }
        ],
    )


class ErrorEvent(SSEEvent):
    """Emitted when the run itself aborts with an unexpected error."""

    event: SSEEventType = SSEEventType.ERROR
    data: dict[str, str] = Field(
        examples=[{"error": "An error occurred processing your request.", "error_type": "RuntimeError"}],
    )
