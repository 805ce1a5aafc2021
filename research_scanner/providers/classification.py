"""Classification provider: OpenAI chat completion with fixed sampling parameters."""

from collections.abc import Sequence
from typing import Any

from research_scanner.models import StepResult
from research_scanner.providers.base import PassthroughProvider, build_prompt


class ClassificationProvider(PassthroughProvider):
    role = "classification-provider"
    label = "OpenAI"
    path = "chat/completions"

    def connection_key(self) -> str:
        return self._settings.pica_openai_connection_key

    def action_id(self) -> str:
        return self._settings.openai_action_id

    def request_body(self, query: str, instruction: str, context: Sequence[StepResult] | None) -> dict[str, Any]:
        return {
            "model": self._settings.classification_model,
            "messages": [
                {"role": "system", "content": build_prompt(instruction, query, context)},
                {"role": "user", "content": query},
            ],
            "max_completion_tokens": 2000,
            "temperature": 0.3,
            "presence_penalty": 0,
            "frequency_penalty": 0,
            "stream": False,
        }

    async def invoke(
        self,
        query: str,
        instruction: str,
        context: Sequence[StepResult] | None = None,
    ) -> dict[str, Any]:
        return await self._post(self.request_body(query, instruction, context))
