"""OpenRouter adapter."""

from __future__ import annotations

from typing import Any

from modelgate.adapters.openai_compatible import OpenAICompatibleAdapter


class OpenRouterAdapter(OpenAICompatibleAdapter):
    """OpenAI-compatible adapter with OpenRouter's endpoint as the default."""

    default_base_url = "https://openrouter.ai/api/v1"


def create_openrouter(**options: Any) -> OpenRouterAdapter:
    return OpenRouterAdapter(**options)


__all__ = ["OpenRouterAdapter", "create_openrouter"]
