"""Pydantic models for the multi-step research orchestrator.

JSON payloads use camelCase keys (``stepName``, ``previousData``) so the
presentation layer can consume them directly; Python code uses snake_case
attribute names. Both spellings are accepted on input.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Citation(CamelModel):
    """A cited source returned by the search provider, enriched with scores."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    url: str = Field(
        default="#",
        description="Source URL, or '#' when the upstream value was missing or malformed",
        examples=["https://www.ipcc.ch/report/ar6/syr/"],
    )
    title: str | None = Field(default=None, examples=["AR6 Synthesis Report: Climate Change 2023"])
    snippet: str | None = Field(default=None, examples=["Policies and laws addressing mitigation have consistently expanded..."])
    relevance_score: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Position-based relevance, decaying with the citation's rank",
        examples=[0.93],
    )
    trust_score: float | None = Field(default=None, ge=0.0, le=1.0, examples=[0.81])
    category: str = Field(default="web", description="Declared upstream source, or 'web'", examples=["web"])


class StepStatus(str, Enum):
    """Outcome of one pipeline step."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class StepResult(CamelModel):
    """Immutable record of one completed pipeline step, appended to the run history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step: int = Field(ge=0, le=4, description="Step index, 0-4", examples=[0])
    step_name: str = Field(description="Human-readable step name", examples=["Initial research"])
    service: str = Field(description="Provider(s) consulted for this step", examples=["Perplexity"])
    status: StepStatus = Field(
        default=StepStatus.COMPLETED,
        description="completed, partial (step 3 with one failed call) or failed",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw provider payload for the step, or a failure marker",
    )
    next_step: int | None = Field(default=None, description="Index of the next step, null after the final report")
    progress: int = Field(default=0, ge=0, le=100, description="Fixed progress checkpoint", examples=[20])
    ai_thoughts: list[str] = Field(
        default_factory=list,
        description="Static narration strings for the presentation layer",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Step-specific indicators (confidence, counts)",
        examples=[{"sourcesFound": 5, "tokensUsed": 120, "confidence": 0.75}],
    )

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAILED


class StepResponse(StepResult):
    """Single-step API response: a StepResult plus the history it was computed from."""

    previous_data: list[StepResult] | None = Field(
        default=None,
        description="History of steps 0..step-1 that fed this step",
    )

    def to_result(self) -> StepResult:
        """Drop ``previous_data`` so the history never nests."""
        return StepResult.model_validate(self.model_dump(exclude={"previous_data"}))


class StepRequest(CamelModel):
    """Incoming single-step request."""

    query: str = Field(
        min_length=1,
        max_length=4000,
        description="Research query, forwarded verbatim to the providers",
        examples=["climate policy"],
    )
    step: int = Field(default=0, ge=0, le=4, description="Step index to execute (0-4)", examples=[0])
    previous_data: list[StepResult] | None = Field(
        default=None,
        description="Results of steps 0..step-1, in order",
    )

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query is required")
        return value


class RunRequest(CamelModel):
    """Incoming one-shot research request."""

    query: str = Field(min_length=1, max_length=4000, examples=["climate policy"])

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Query is required")
        return value


class CrossReference(CamelModel):
    """A confidence-scored relationship between providers' outputs."""

    type: str = Field(examples=["fact_verification"])
    confidence: float = Field(ge=0.0, le=1.0, examples=[0.92])
    sources: list[str] = Field(default_factory=list, examples=[["Perplexity", "Gemini"]])
    description: str = Field(default="", examples=["Facts confirmed by multiple sources"])


class ResearchStepSummary(CamelModel):
    step: int
    service: str
    confidence: float


class KnowledgeGraph(CamelModel):
    """Graph skeleton; the presentation layer lays out and fills it."""

    nodes: list[dict[str, Any]] = Field(default_factory=list)
    edges: list[dict[str, Any]] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)


class QualityMetrics(CamelModel):
    factual_accuracy: float = Field(default=0.95, ge=0.0, le=1.0)
    source_reliability: float = Field(default=0.88, ge=0.0, le=1.0)
    analysis_depth: float = Field(default=0.92, ge=0.0, le=1.0)
    synthesis_quality: float = Field(default=0.90, ge=0.0, le=1.0)


class FinalReport(CamelModel):
    """Aggregate report built at the final step from the whole history."""

    query: str = Field(examples=["climate policy"])
    timestamp: str = Field(description="ISO 8601 UTC build time", examples=["2026-10-17T09:30:00+00:00"])
    total_sources: int = Field(default=0, ge=0, description="Citations across all search payloads")
    total_tokens: int = Field(default=0, ge=0, description="Token usage across all payloads reporting it")
    research_steps: list[ResearchStepSummary] = Field(default_factory=list)
    key_findings: list[str] = Field(default_factory=list)
    knowledge_graph: KnowledgeGraph = Field(default_factory=KnowledgeGraph)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    recommendations: list[str] = Field(default_factory=list)


class ResearchRun(CamelModel):
    """Complete result of an in-process five-step run."""

    query: str = Field(min_length=1, examples=["climate policy"])
    steps: list[StepResult] = Field(description="History of all five steps, in order")
    final_report: FinalReport = Field(description="Report produced by the final step")
    failed_steps: list[int] = Field(default_factory=list, description="Indices of steps that failed")
    total_ms: int = Field(ge=0, description="Wall-clock duration of the run (milliseconds)", examples=[18500])
