"""Provider factories and cached production getters."""

from functools import lru_cache

import httpx

from research_scanner.config import ProviderSettings, get_settings
from research_scanner.providers.classification import ClassificationProvider
from research_scanner.providers.reasoning import ReasoningProvider
from research_scanner.providers.search import SearchProvider
from research_scanner.scoring import CitationScorer


def create_search_provider(
    settings: ProviderSettings,
    client: httpx.AsyncClient | None = None,
    scorer: CitationScorer | None = None,
) -> SearchProvider:
    """Uncached factory - inject a mock transport client and seeded scorer in tests."""
    return SearchProvider(settings, client=client, scorer=scorer)


@lru_cache(maxsize=1)
def get_search_provider() -> SearchProvider:
    """Cached getter for production."""
    return create_search_provider(get_settings())


def create_reasoning_provider(settings: ProviderSettings, client: httpx.AsyncClient | None = None) -> ReasoningProvider:
    """Uncached factory - inject a mock transport client in tests."""
    return ReasoningProvider(settings, client=client)


@lru_cache(maxsize=1)
def get_reasoning_provider() -> ReasoningProvider:
    """Cached getter for production."""
    return create_reasoning_provider(get_settings())


def create_classification_provider(
    settings: ProviderSettings,
    client: httpx.AsyncClient | None = None,
) -> ClassificationProvider:
    """Uncached factory - inject a mock transport client in tests."""
    return ClassificationProvider(settings, client=client)


@lru_cache(maxsize=1)
def get_classification_provider() -> ClassificationProvider:
    """Cached getter for production."""
    return create_classification_provider(get_settings())


def clear_provider_cache() -> None:
    """Clear all provider caches."""
    get_search_provider.cache_clear()
    get_reasoning_provider.cache_clear()
    get_classification_provider.cache_clear()
