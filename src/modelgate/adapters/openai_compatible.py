"""Adapter for endpoints speaking the OpenAI chat-completions protocol."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

import httpx

from modelgate._internal.abort import AbortSignal
from modelgate.adapters.base import BaseAdapter, NoSuchModelError


class ChatModel:
    """Handle bound to one model id of an OpenAI-compatible endpoint."""

    def __init__(self, adapter: "OpenAICompatibleAdapter", model_id: str) -> None:
        self.adapter = adapter
        self.model_id = model_id

    def build_request(self, messages: Sequence[Mapping[str, Any]], **params: Any) -> httpx.Request:
        """Return the HTTP request for a chat completion."""
        adapter = self.adapter
        if not adapter.base_url:
            raise ValueError(f"No base_url configured for provider '{adapter.name}'")

        body: dict[str, Any] = {"model": self.model_id, "messages": list(messages), **params}
        if body.get("stream") and adapter.include_usage:
            body.setdefault("stream_options", {"include_usage": True})

        headers = {"Content-Type": "application/json", **adapter.headers}
        if adapter.api_key:
            headers.setdefault("Authorization", f"Bearer {adapter.api_key}")
        return httpx.Request("POST", f"{adapter.base_url}/chat/completions", headers=headers, json=body)

    async def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        signal: Optional[AbortSignal] = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Send a chat completion and return the decoded JSON body.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers with an error status.
        """
        request = self.build_request(messages, **params)
        response = await self.adapter.fetch(request, signal=signal)
        response.raise_for_status()
        return response.json()

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"ChatModel(provider={self.adapter.name!r}, model={self.model_id!r})"


class OpenAICompatibleAdapter(BaseAdapter):
    """Adapter for any ``/chat/completions`` endpoint."""

    default_base_url: Optional[str] = None

    def __init__(self, *, include_usage: bool = False, base_url: Optional[str] = None, **options: Any):
        super().__init__(base_url=base_url or self.default_base_url, **options)
        self.include_usage = include_usage

    def language_model(self, model_id: str) -> ChatModel:
        if not model_id:
            raise NoSuchModelError(model_id, "Model id must be a non-empty string")
        return ChatModel(self, model_id)


class OpenAIAdapter(OpenAICompatibleAdapter):
    default_base_url = "https://api.openai.com/v1"


def create_openai_compatible(**options: Any) -> OpenAICompatibleAdapter:
    """Construct an :class:`OpenAICompatibleAdapter`."""
    return OpenAICompatibleAdapter(**options)


def create_openai(**options: Any) -> OpenAIAdapter:
    return OpenAIAdapter(**options)


__all__ = [
    "ChatModel",
    "OpenAIAdapter",
    "OpenAICompatibleAdapter",
    "create_openai",
    "create_openai_compatible",
]
