"""Reasoning provider: Gemini ``generateContent`` over the accumulated history."""

from collections.abc import Sequence
from typing import Any

from research_scanner.models import StepResult
from research_scanner.providers.base import PassthroughProvider, build_prompt


class ReasoningProvider(PassthroughProvider):
    role = "reasoning-provider"
    label = "Gemini"

    @property
    def path(self) -> str:  # type: ignore[override]
        return f"models/{self._settings.reasoning_model}:generateContent"

    def connection_key(self) -> str:
        return self._settings.pica_gemini_connection_key

    def action_id(self) -> str:
        return self._settings.gemini_action_id

    def request_body(self, query: str, instruction: str, context: Sequence[StepResult] | None) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": build_prompt(instruction, query, context)}]}]}

    async def invoke(
        self,
        query: str,
        instruction: str,
        context: Sequence[StepResult] | None = None,
    ) -> dict[str, Any]:
        return await self._post(self.request_body(query, instruction, context))
