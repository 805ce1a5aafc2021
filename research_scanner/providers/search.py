"""Search provider: Perplexity ``sonar`` with citation post-processing."""

from collections.abc import Sequence
from typing import Any

import httpx

from research_scanner.config import ProviderSettings
from research_scanner.models import Citation, StepResult
from research_scanner.providers.base import PassthroughProvider
from research_scanner.scoring import CitationScorer, JitteredCitationScorer, clamp

PLACEHOLDER_URL = "#"


def _valid_url(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return PLACEHOLDER_URL


def _text_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def enrich_citations(payload: dict[str, Any], scorer: CitationScorer) -> dict[str, Any]:
    """Return ``payload`` with each citation normalized and scored.

    Plain-string citations become ``{"url": ...}``. A missing or malformed URL
    is replaced by ``PLACEHOLDER_URL`` at the same position; valid URLs are
    left untouched. Scores always lie in [0, 1].
    """
    citations = payload.get("citations")
    if not isinstance(citations, list):
        return payload

    enriched: list[dict[str, Any]] = []
    for index, raw in enumerate(citations):
        fields = dict(raw) if isinstance(raw, dict) else {"url": raw}
        source = fields.get("source")
        fields.update(
            url=_valid_url(fields.get("url")),
            title=_text_or_none(fields.get("title")),
            snippet=_text_or_none(fields.get("snippet")),
            relevanceScore=clamp(scorer.relevance(index)),
            trustScore=clamp(scorer.trust(index)),
            category=source if isinstance(source, str) and source else "web",
        )
        fields.pop("relevance_score", None)
        fields.pop("trust_score", None)
        citation = Citation.model_validate(fields)
        dumped = citation.model_dump(by_alias=True)
        for optional in ("title", "snippet"):
            if dumped[optional] is None:
                del dumped[optional]
        enriched.append(dumped)

    return {**payload, "citations": enriched}


class SearchProvider(PassthroughProvider):
    """Recency-filtered, citation-bearing search calls."""

    role = "search-provider"
    label = "Perplexity"
    path = "chat/completions"

    def __init__(
        self,
        settings: ProviderSettings,
        client: httpx.AsyncClient | None = None,
        scorer: CitationScorer | None = None,
    ) -> None:
        super().__init__(settings, client)
        self._scorer = scorer or JitteredCitationScorer()

    def connection_key(self) -> str:
        return self._settings.pica_perplexity_connection_key

    def action_id(self) -> str:
        return self._settings.perplexity_action_id

    def request_body(self, query: str, instruction: str) -> dict[str, Any]:
        return {
            "model": self._settings.search_model,
            "messages": [
                {"role": "system", "content": instruction},
                {"role": "user", "content": query},
            ],
            "return_images": True,
            "return_related_questions": True,
            "temperature": 0.2,
            "max_tokens": 2000,
            "top_p": 0.9,
            "search_recency_filter": "month",
        }

    async def invoke(
        self,
        query: str,
        instruction: str,
        context: Sequence[StepResult] | None = None,
    ) -> dict[str, Any]:
        # Search runs on the query alone; prior steps are not sent upstream.
        payload = await self._post(self.request_body(query, instruction))
        return enrich_citations(payload, self._scorer)
