"""Built-in provider-specific loaders applied at the end of the merge.

A custom loader inspects the merged candidate for its provider (or ``None``
when the catalog does not know it) and may:

- mark the provider auto-loadable even without a credential,
- contribute adapter options such as extra headers,
- supply a :data:`CustomModelLoader` that replaces the adapter's default
  ``language_model`` lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from modelgate.provider.schema import ProviderInfo

CustomModelLoader = Callable[[Any, str, Mapping[str, Any]], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class CustomLoaderResult:
    autoload: bool = False
    options: Optional[Mapping[str, Any]] = None
    get_model: Optional[CustomModelLoader] = None


CustomLoader = Callable[
    [Optional[ProviderInfo]],
    Union[Optional[CustomLoaderResult], Awaitable[Optional[CustomLoaderResult]]],
]


async def _openrouter(provider: Optional[ProviderInfo]) -> CustomLoaderResult:
    return CustomLoaderResult(
        autoload=True,
        options={
            "headers": {
                "HTTP-Referer": "https://github.com/modelgate/modelgate",
                "X-Title": "modelgate",
            },
        },
    )


CUSTOM_LOADERS: dict[str, CustomLoader] = {
    "openrouter": _openrouter,
}


__all__ = ["CUSTOM_LOADERS", "CustomLoader", "CustomLoaderResult", "CustomModelLoader"]
