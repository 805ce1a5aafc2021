"""Research Scanner - multi-step AI research orchestrator"""

__version__ = "0.1.0"

from research_scanner.config import ProviderSettings, get_settings
from research_scanner.exceptions import InvalidStepRequestError, ProviderError, ResearchPipelineError
from research_scanner.executor import (
    JoinOutcome,
    JoinStatus,
    StepExecutor,
    create_step_executor,
    get_step_executor,
    run_step,
)
from research_scanner.models import (
    Citation,
    CrossReference,
    FinalReport,
    ResearchRun,
    StepRequest,
    StepResponse,
    StepResult,
    StepStatus,
)
from research_scanner.synthesis import build_final_report, cross_reference
from research_scanner.workflow import run_research_workflow

__all__ = [
    # Models
    "Citation",
    "StepStatus",
    "StepResult",
    "StepResponse",
    "StepRequest",
    "CrossReference",
    "FinalReport",
    "ResearchRun",
    # Configuration
    "ProviderSettings",
    "get_settings",
    # Exceptions
    "ResearchPipelineError",
    "InvalidStepRequestError",
    "ProviderError",
    # Executor
    "StepExecutor",
    "JoinOutcome",
    "JoinStatus",
    "create_step_executor",
    "get_step_executor",
    "run_step",
    # Synthesis
    "cross_reference",
    "build_final_report",
    # Workflow
    "run_research_workflow",
]
