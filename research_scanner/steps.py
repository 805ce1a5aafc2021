"""Static catalog of the five research pipeline steps."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from research_scanner.exceptions import InvalidStepRequestError


class ProviderRole(str, Enum):
    SEARCH = "search-provider"
    REASONING = "reasoning-provider"
    CLASSIFICATION = "classification-provider"


@dataclass(frozen=True)
class StepDefinition:
    """Fixed description of one pipeline step."""

    index: int
    key: str
    name: str
    service: str
    progress: int
    providers: tuple[ProviderRole, ...]
    instructions: dict[ProviderRole, str]
    thoughts: tuple[str, ...]
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def next_step(self) -> int | None:
        return self.index + 1 if self.index < FINAL_STEP else None

    @property
    def parallel(self) -> bool:
        return len(self.providers) > 1

    def error_thoughts(self) -> list[str]:
        return [
            f"❌ Error on step {self.index} ({self.name})",
            "🔄 Moving on to the next step...",
        ]

    def completion_thoughts(self) -> list[str]:
        thoughts = [f"✅ {self.name} completed successfully!"]
        if self.next_step is not None:
            thoughts.append("📊 Data passed to the next step...")
        return thoughts


INITIAL_RESEARCH = StepDefinition(
    index=0,
    key="initial_research",
    name="Initial research",
    service="Perplexity",
    progress=20,
    providers=(ProviderRole.SEARCH,),
    instructions={
        ProviderRole.SEARCH: (
            "You are a first-level research assistant. Carry out initial research on the query, "
            "find the main sources and build a basic knowledge structure. Provide detailed citations "
            "and sources. Your results will be passed on to Gemini and OpenAI for further analysis."
        ),
    },
    thoughts=(
        "🔍 Analyzing the user's query...",
        "📡 Scanning available information sources...",
        "🎯 Identifying key research topics...",
        "📊 Collecting primary data from reliable sources...",
        "🔗 Building the base knowledge structure...",
    ),
    metadata={"confidence": 0.75},
)

DEEP_ANALYSIS = StepDefinition(
    index=1,
    key="deep_analysis",
    name="Deep analysis",
    service="Gemini",
    progress=40,
    providers=(ProviderRole.REASONING,),
    instructions={
        ProviderRole.REASONING: (
            "You are a second-level analyst. Analyze the data from Perplexity, perform a deep semantic "
            "analysis and surface hidden connections and patterns. Build a detailed analytical structure "
            "to hand over to OpenAI."
        ),
    },
    thoughts=(
        "🧠 Receiving Perplexity data for analysis...",
        "🔬 Running semantic analysis of the content...",
        "🕸️ Uncovering hidden links between concepts...",
        "📈 Analyzing trends and patterns in the data...",
        "🎭 Identifying contextual nuances...",
        "🔄 Preparing structured data for OpenAI...",
    ),
    metadata={"conceptsAnalyzed": 15, "connectionsFound": 8, "confidence": 0.85},
)

CLASSIFICATION_TAGGING = StepDefinition(
    index=2,
    key="classification_tagging",
    name="Classification and tagging",
    service="OpenAI GPT-4",
    progress=65,
    providers=(ProviderRole.CLASSIFICATION,),
    instructions={
        ProviderRole.CLASSIFICATION: (
            "You are a third-level classification and tagging specialist. Use the data from Perplexity "
            "and the analysis from Gemini to build a detailed tagging system, classify the information "
            "and structure the knowledge."
        ),
    },
    thoughts=(
        "🏷️ Receiving processed data from Gemini...",
        "📋 Building a classification system for the information...",
        "🎯 Generating relevant tags for each concept...",
        "📊 Structuring data by importance...",
        "🔍 Extracting key insights and conclusions...",
        "🌐 Building a knowledge graph of tagged nodes...",
    ),
    metadata={"tagsGenerated": 25, "categoriesCreated": 6, "confidence": 0.9},
)

SYNTHESIS_VALIDATION = StepDefinition(
    index=3,
    key="synthesis_validation",
    name="Synthesis and validation",
    service="Multi-AI (Perplexity + Gemini)",
    progress=85,
    providers=(ProviderRole.SEARCH, ProviderRole.REASONING),
    instructions={
        ProviderRole.SEARCH: (
            "Validate and fact-check the final research results. Make sure the information is accurate "
            "and up to date."
        ),
        ProviderRole.REASONING: (
            "Synthesize all data from the previous stages into a single coherent knowledge structure. "
            "Produce final conclusions and recommendations."
        ),
    },
    thoughts=(
        "🔄 Synthesizing data from all AI services...",
        "✅ Cross-validating facts through Perplexity...",
        "🧬 Merging the Gemini analysis into one structure...",
        "🎯 Detecting contradictions and removing inaccuracies...",
        "📊 Producing the final reliability assessment...",
        "🌟 Shaping key insights and conclusions...",
    ),
    metadata={"factsValidated": 45, "contradictionsResolved": 3, "finalConfidence": 0.95},
)

FINAL_REPORT = StepDefinition(
    index=4,
    key="final_report",
    name="Final report",
    service="Research Orchestrator",
    progress=100,
    providers=(),
    instructions={},
    thoughts=(
        "📋 Compiling the final research report...",
        "📊 Integrating all data and analysis...",
        "🎨 Building visualizations and knowledge graphs...",
        "📈 Generating research quality metrics...",
        "✨ Finalizing the presentation of results...",
        "🎯 Research completed successfully!",
    ),
    metadata={"researchQuality": 0.98},
)

STEPS: tuple[StepDefinition, ...] = (
    INITIAL_RESEARCH,
    DEEP_ANALYSIS,
    CLASSIFICATION_TAGGING,
    SYNTHESIS_VALIDATION,
    FINAL_REPORT,
)

FINAL_STEP = len(STEPS) - 1


def get_step(index: int) -> StepDefinition:
    """Look up a step definition, rejecting indices outside 0-4."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= FINAL_STEP:
        raise InvalidStepRequestError(f"step must be an integer between 0 and {FINAL_STEP}, got {index!r}")
    return STEPS[index]
