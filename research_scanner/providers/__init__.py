"""Provider adapters wrapping the external AI HTTP APIs."""

from research_scanner.providers.base import PassthroughProvider, ProviderAdapter, build_prompt, serialize_context
from research_scanner.providers.classification import ClassificationProvider
from research_scanner.providers.factories import (
    clear_provider_cache,
    create_classification_provider,
    create_reasoning_provider,
    create_search_provider,
    get_classification_provider,
    get_reasoning_provider,
    get_search_provider,
)
from research_scanner.providers.reasoning import ReasoningProvider
from research_scanner.providers.search import PLACEHOLDER_URL, SearchProvider, enrich_citations

__all__ = [
    # Contract
    "ProviderAdapter",
    "PassthroughProvider",
    "build_prompt",
    "serialize_context",
    # Adapters
    "SearchProvider",
    "ReasoningProvider",
    "ClassificationProvider",
    "enrich_citations",
    "PLACEHOLDER_URL",
    # Factories
    "create_search_provider",
    "create_reasoning_provider",
    "create_classification_provider",
    # Cached getters
    "get_search_provider",
    "get_reasoning_provider",
    "get_classification_provider",
    "clear_provider_cache",
]
