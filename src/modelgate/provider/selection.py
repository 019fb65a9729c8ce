"""Model ordering, ``provider/model`` parsing, and fuzzy suggestions."""

from __future__ import annotations

import difflib
from typing import Iterable, List, NamedTuple, Optional, Sequence

from modelgate.provider.schema import Model, ProviderInfo

# Preferred default models, best first. Matched as substrings of model ids.
PRIORITY: tuple[str, ...] = (
    "grok-code-fast-1",
    "claude-sonnet-4.5",
    "gpt-5",
    "gemini-2.5-pro",
    "grok-4-fast",
    "deepseek-r1",
    "qwen3-235b",
)

# Small, cheap models used for auxiliary tasks, best first.
SMALL_MODEL_PRIORITY: tuple[str, ...] = (
    "gemini-2.5-flash",
    "gpt-4o-mini",
    "claude-3.5-haiku",
    "grok-3-mini-fast",
    "deepseek-chat",
)

SMALL_MODEL_FALLBACK = ("openrouter", "google/gemini-2.5-flash")

MAX_SUGGESTIONS = 3


class ModelRef(NamedTuple):
    provider_id: str
    model_id: str


def parse_model(value: str) -> ModelRef:
    """Split ``provider/model`` on the first slash.

    Examples:
        >>> parse_model("openrouter/google/gemini-2.5-flash")
        ModelRef(provider_id='openrouter', model_id='google/gemini-2.5-flash')
    """
    provider_id, _, model_id = value.partition("/")
    return ModelRef(provider_id, model_id)


def _priority_rank(model_id: str, priority: Sequence[str]) -> int:
    for index, fragment in enumerate(priority):
        if fragment in model_id:
            return index
    return len(priority)


def sort(models: Iterable[Model], priority: Sequence[str] = PRIORITY) -> List[Model]:
    """Order models best first.

    Earlier priority fragments outrank later ones and any match outranks no
    match; ties prefer ids containing ``latest``, then reverse id order.
    """
    ordered = sorted(models, key=lambda model: model.id, reverse=True)
    ordered.sort(
        key=lambda model: (
            _priority_rank(model.id, priority),
            0 if "latest" in model.id else 1,
        )
    )
    return ordered


def closest(provider: Optional[ProviderInfo], queries: Sequence[str]) -> Optional[ModelRef]:
    """Return the first model id containing a query fragment, in query order."""
    if provider is None:
        return None
    for query in queries:
        for model_id in provider.models:
            if query in model_id:
                return ModelRef(provider.id, model_id)
    return None


def suggest(query: str, candidates: Iterable[str], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Return up to ``limit`` candidates ranked by similarity to ``query``.

    No similarity cutoff is applied: any candidate may be suggested.
    """
    return difflib.get_close_matches(query, list(candidates), n=limit, cutoff=0.0)


__all__ = [
    "MAX_SUGGESTIONS",
    "ModelRef",
    "PRIORITY",
    "SMALL_MODEL_FALLBACK",
    "SMALL_MODEL_PRIORITY",
    "closest",
    "parse_model",
    "sort",
    "suggest",
]
