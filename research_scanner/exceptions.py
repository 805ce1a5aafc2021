"""Domain-specific exceptions for the research orchestrator."""


class ResearchPipelineError(Exception):
    """Base exception for research pipeline errors."""


class InvalidStepRequestError(ResearchPipelineError):
    """Raised when a step request is malformed and the pipeline cannot start."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid research step request: {reason}")


class ProviderError(ResearchPipelineError):
    """Raised when an upstream AI provider call fails.

    Covers non-success HTTP statuses, transport failures, timeouts,
    undecodable bodies and missing credentials. Never retried.
    """

    def __init__(self, provider: str, reason: str, status_code: int | None = None) -> None:
        self.provider = provider
        self.reason = reason
        self.status_code = status_code
        if status_code is not None:
            message = f"{provider} API error: {status_code}"
        else:
            message = f"{provider} API error: {reason}"
        super().__init__(message)
