"""OpenAI-compatible provider adapter (OpenAI, DeepSeek, Moonshot, Ollama /v1, ...)."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx

from streamchat.core import ProviderBadResponseError, ProviderError, get_logger
from streamchat.providers.base import (
    BaseProvider,
    ChatChunk,
    ChatMessage,
    ChatRequest,
    ModelInfo,
    ProviderSettings,
)
from streamchat.providers.http_client import (
    map_transport_error,
    parse_json,
    raise_for_status,
    request_headers,
    send_request,
)

logger = get_logger(__name__)


class OpenAICompatProvider(BaseProvider):
    """Adapter for the OpenAI chat-completions HTTP surface."""

    def __init__(self, settings: ProviderSettings, client: httpx.AsyncClient):
        super().__init__(settings)
        self.display_name = settings.provider or "openai"
        self.base_url = settings.effective_base_url
        self.client = client

    def _headers(self) -> dict[str, str]:
        return request_headers(self.settings.api_key)

    async def healthcheck(self) -> bool:
        """Verify endpoint and credential by listing models."""
        await self.list_models()
        return True

    async def list_models(self) -> list[ModelInfo]:
        """List models from /models."""
        response = await send_request(
            self.client, "GET", f"{self.base_url}/models", headers=self._headers()
        )
        raise_for_status(response)
        payload = parse_json(response)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise ProviderBadResponseError(
                "Provider returned invalid response", details={"body": str(payload)[:300]}
            )
        return [
            ModelInfo(id=item["id"], owned_by=item.get("owned_by"), metadata=item)
            for item in data
            if isinstance(item, dict) and item.get("id")
        ]

    async def chat_stream(self, request: ChatRequest) -> AsyncIterator[ChatChunk]:
        """Stream chat completion deltas parsed from the SSE response body."""
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": _format_messages(request.messages),
            "stream": True,
        }
        logger.debug(
            "Opening provider stream",
            data={
                "provider": self.display_name,
                "model": request.model,
                "messages_count": len(request.messages),
            },
        )
        try:
            async with self.client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers(),
            ) as response:
                if response.status_code >= 400:
                    await response.aread()
                    raise_for_status(response)

                async for line in response.aiter_lines():
                    data = _sse_data(line)
                    if data is None:
                        continue
                    if data == "[DONE]":
                        return

                    try:
                        chunk_obj = json.loads(data)
                    except json.JSONDecodeError as exc:
                        raise ProviderBadResponseError(
                            "Provider returned invalid response", details={"body": data[:300]}
                        ) from exc

                    if not isinstance(chunk_obj, dict):
                        raise ProviderBadResponseError(
                            "Provider returned invalid response", details={"body": data[:300]}
                        )

                    if chunk_obj.get("error"):
                        error = chunk_obj["error"]
                        message = error.get("message") if isinstance(error, dict) else str(error)
                        raise ProviderError(
                            message or "Provider error", details={"error": error}
                        )

                    choices = chunk_obj.get("choices") or []
                    if not choices:
                        continue
                    choice = choices[0] if isinstance(choices, list) else None
                    if not isinstance(choice, dict):
                        raise ProviderBadResponseError(
                            "Provider returned invalid response", details={"body": data[:300]}
                        )
                    content = (choice.get("delta") or {}).get("content") or ""
                    finish_reason = choice.get("finish_reason")
                    if not content and not finish_reason:
                        continue

                    yield ChatChunk(
                        content=content,
                        finish_reason=finish_reason,
                        model=chunk_obj.get("model", request.model),
                    )
        except httpx.HTTPError as exc:
            raise map_transport_error(exc) from exc


def _sse_data(line: str) -> str | None:
    """Return the payload of an SSE ``data:`` line, or None for anything else."""
    line = line.strip()
    if not line.startswith("data:"):
        return None
    return line[5:].strip() or None


def _format_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Convert ChatMessage objects to the chat-completions shape."""
    return [{"role": msg.role, "content": msg.content} for msg in messages]
