"""Shared fakes for executor, workflow and server tests."""

from collections.abc import Sequence
from typing import Any

import pytest

from research_scanner.exceptions import ProviderError
from research_scanner.executor import StepExecutor
from research_scanner.models import StepResult


class FakeProvider:
    """Records every call and returns a canned payload, or raises ``ProviderError``."""

    def __init__(self, role: str, label: str, payload: dict[str, Any] | None = None, fail: bool = False) -> None:
        self.role = role
        self.label = label
        self.payload = payload if payload is not None else {}
        self.fail = fail
        self.calls: list[dict[str, Any]] = []

    async def invoke(self, query: str, instruction: str, context: Sequence[StepResult] | None = None) -> dict[str, Any]:
        self.calls.append({"query": query, "instruction": instruction, "context": context})
        if self.fail:
            raise ProviderError(self.label, "non-success status", status_code=503)
        return dict(self.payload)


def make_search_payload(citation_count: int = 5, total_tokens: int = 120) -> dict[str, Any]:
    return {
        "citations": [
            {"url": f"https://example.org/{i}", "relevanceScore": 0.9, "trustScore": 0.8, "category": "web"}
            for i in range(citation_count)
        ],
        "usage": {"total_tokens": total_tokens},
    }


def make_executor(
    *,
    search_fail: bool = False,
    reasoning_fail: bool = False,
    classification_fail: bool = False,
) -> tuple[StepExecutor, FakeProvider, FakeProvider, FakeProvider]:
    search = FakeProvider("search-provider", "Perplexity", make_search_payload(), fail=search_fail)
    reasoning = FakeProvider(
        "reasoning-provider",
        "Gemini",
        {"candidates": [{"content": {"parts": [{"text": "analysis"}]}}]},
        fail=reasoning_fail,
    )
    classification = FakeProvider(
        "classification-provider",
        "OpenAI",
        {"choices": [{"message": {"content": "tags"}}], "usage": {"total_tokens": 80}},
        fail=classification_fail,
    )
    return StepExecutor(search, reasoning, classification), search, reasoning, classification


@pytest.fixture
def executor() -> StepExecutor:
    return make_executor()[0]
