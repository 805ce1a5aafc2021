"""Demo mode fixtures for exercising the pipeline without burning API keys."""

import os
import random
from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from research_scanner.executor import StepExecutor
from research_scanner.models import StepResult
from research_scanner.providers.base import build_prompt
from research_scanner.providers.search import enrich_citations
from research_scanner.scoring import JitteredCitationScorer

DEMO_SEED = 2024


def is_demo_mode_allowed() -> bool:
    """Demo mode is only allowed in development and staging environments."""
    environment = os.getenv("ENVIRONMENT", "development")
    return environment in ("development", "staging")


_DEMO_CITATIONS: tuple[dict[str, Any], ...] = (
    {
        "url": "https://www.ipcc.ch/report/ar6/syr/",
        "title": "AR6 Synthesis Report: Climate Change 2023",
        "snippet": "Policies and laws addressing mitigation have consistently expanded since AR5.",
        "source": "ipcc",
    },
    {
        "url": "https://www.iea.org/reports/world-energy-outlook-2024",
        "title": "World Energy Outlook 2024",
        "snippet": "Clean energy investment is now almost double the amount going to fossil fuels.",
        "source": "iea",
    },
    {
        "url": "https://unfccc.int/process-and-meetings/the-paris-agreement",
        "title": "The Paris Agreement",
        "snippet": "A legally binding international treaty on climate change adopted by 196 Parties.",
    },
    {
        "url": "https://www.worldbank.org/en/topic/climatechange/overview",
        "title": "Climate Change Overview",
        "snippet": "Carbon pricing initiatives now cover about a quarter of global emissions.",
        "source": "worldbank",
    },
    {
        "url": "https://climateactiontracker.org/global/temperatures/",
        "title": "Warming Projections Global Update",
        "snippet": "Current policies put the world on track for around 2.7C of warming.",
    },
)


class DemoSearchProvider:
    """Canned search-provider payload, post-processed like a live response."""

    role = "search-provider"
    label = "Perplexity"

    def __init__(self, seed: int = DEMO_SEED) -> None:
        self._scorer = JitteredCitationScorer(random.Random(seed))

    async def invoke(self, query: str, instruction: str, context: Sequence[StepResult] | None = None) -> dict[str, Any]:
        payload = {
            "id": "demo-sonar-0001",
            "model": "sonar",
            "object": "chat.completion",
            "citations": [dict(citation) for citation in _DEMO_CITATIONS],
            "related_questions": [
                f"What are the main instruments used in {query}?",
                f"How effective has {query} been over the last decade?",
            ],
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {
                        "role": "assistant",
                        "content": f"Initial overview of '{query}' drawing on five recent sources [1][2][3][4][5].",
                    },
                }
            ],
            "usage": {"prompt_tokens": 40, "completion_tokens": 80, "total_tokens": 120},
        }
        return enrich_citations(payload, self._scorer)


class DemoReasoningProvider:
    """Canned ``generateContent`` response echoing the prompt size."""

    role = "reasoning-provider"
    label = "Gemini"

    async def invoke(self, query: str, instruction: str, context: Sequence[StepResult] | None = None) -> dict[str, Any]:
        prompt = build_prompt(instruction, query, context)
        return {
            "candidates": [
                {
                    "content": {
                        "role": "model",
                        "parts": [{"text": f"Deep analysis of '{query}': three themes, eight connections identified."}],
                    },
                    "finishReason": "STOP",
                }
            ],
            "usageMetadata": {"promptTokenCount": len(prompt.split()), "candidatesTokenCount": 64},
            "modelVersion": "gemini-1.5-flash",
        }


class DemoClassificationProvider:
    """Canned chat-completion response with token usage."""

    role = "classification-provider"
    label = "OpenAI"

    async def invoke(self, query: str, instruction: str, context: Sequence[StepResult] | None = None) -> dict[str, Any]:
        return {
            "id": "demo-chatcmpl-0001",
            "object": "chat.completion",
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {
                        "role": "assistant",
                        "content": f"Tags for '{query}': policy, emissions, carbon-pricing, energy-transition.",
                    },
                }
            ],
            "usage": {"prompt_tokens": 60, "completion_tokens": 20, "total_tokens": 80},
        }


@lru_cache(maxsize=1)
def get_demo_step_executor() -> StepExecutor:
    """Executor wired to the offline fixture providers."""
    return StepExecutor(DemoSearchProvider(), DemoReasoningProvider(), DemoClassificationProvider())
