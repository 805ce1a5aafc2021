"""Shared HTTP plumbing for the Pica passthrough provider adapters."""

import json
from collections.abc import Sequence
from typing import Any, ClassVar, Protocol

import httpx

from research_scanner.config import ProviderSettings
from research_scanner.exceptions import ProviderError
from research_scanner.logging import get_logger
from research_scanner.models import StepResult

log = get_logger("research_scanner.providers")


class ProviderAdapter(Protocol):
    """Uniform call contract: prompt in, provider-defined JSON out."""

    role: str
    label: str

    async def invoke(
        self,
        query: str,
        instruction: str,
        context: Sequence[StepResult] | None = None,
    ) -> dict[str, Any]: ...


def serialize_context(context: Sequence[StepResult] | None) -> str:
    if not context:
        return ""
    return json.dumps(
        [result.model_dump(mode="json", by_alias=True) for result in context],
        indent=2,
        ensure_ascii=False,
    )


def build_prompt(instruction: str, query: str, context: Sequence[StepResult] | None) -> str:
    """Instruction, original query and serialized prior steps as one prompt."""
    return f"{instruction}\n\nOriginal query: {query}\n\nData from previous steps:\n{serialize_context(context)}"


class PassthroughProvider:
    """Base adapter posting JSON to one Pica passthrough endpoint.

    Each call is attempted exactly once. Any non-success status, transport
    failure, timeout or undecodable body surfaces as ``ProviderError``.
    """

    role: ClassVar[str]
    label: ClassVar[str]
    path: ClassVar[str]

    def __init__(self, settings: ProviderSettings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = client

    @property
    def url(self) -> str:
        return f"{self._settings.pica_base_url.rstrip('/')}/{self.path.lstrip('/')}"

    def connection_key(self) -> str:
        raise NotImplementedError

    def action_id(self) -> str:
        raise NotImplementedError

    def headers(self) -> dict[str, str]:
        secret = self._settings.pica_secret_key
        connection_key = self.connection_key()
        if not secret or not connection_key:
            raise ProviderError(self.label, "missing credentials")
        return {
            "Content-Type": "application/json",
            "x-pica-secret": secret,
            "x-pica-connection-key": connection_key,
            "x-pica-action-id": self.action_id(),
        }

    async def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        headers = self.headers()
        timeout = self._settings.request_timeout_s
        log.debug("provider.call.started", provider=self.role, url=self.url)

        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=body, headers=headers, timeout=timeout)
            else:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(self.url, json=body, headers=headers)
        except httpx.TimeoutException as e:
            log.warning("provider.call.timeout", provider=self.role, timeout_s=timeout)
            raise ProviderError(self.label, f"timed out after {timeout}s") from e
        except httpx.HTTPError as e:
            log.warning("provider.call.transport_error", provider=self.role, error=str(e))
            raise ProviderError(self.label, str(e) or type(e).__name__) from e

        if not response.is_success:
            log.warning("provider.call.failed", provider=self.role, status_code=response.status_code)
            raise ProviderError(self.label, "non-success status", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(self.label, "response body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise ProviderError(self.label, f"expected a JSON object, got {type(payload).__name__}")

        log.debug("provider.call.completed", provider=self.role, status_code=response.status_code)
        return payload
