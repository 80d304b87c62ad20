from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class LLMError(Exception):
    message: str
    status_code: int | None = None
    body: str | None = None

    def __str__(self) -> str:
        return self.message


class LLMResponseError(LLMError):
    """The service answered successfully but the body is unusable."""


def _require_field(payload: dict[str, Any], field: str, context: str) -> None:
    if field not in payload:
        raise LLMResponseError(f"Missing '{field}' in {context} response")


class _BaseLLMClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            raise LLMError(f"LLM request failed: {exc!r}") from exc
        if not response.is_success:
            raise LLMError(
                f"LLM error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise LLMResponseError(
                "LLM response is not valid JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(payload, dict):
            raise LLMResponseError(
                "LLM response is not a JSON object",
                status_code=response.status_code,
                body=response.text,
            )
        return payload


class ReportClient(_BaseLLMClient):
    """OpenAI-compatible chat completions client. Makes exactly one request per call."""

    async def complete(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._request_json("POST", "/chat/completions", json=payload)
        _require_field(response, "choices", "report generation")
        return response
