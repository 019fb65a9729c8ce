"""Build and cache client adapters for resolved models.

Adapters are shared between every model whose composed construction options
are identical, so a provider with many models usually holds one adapter.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from typing import Any, Dict, List, Mapping, Optional

from modelgate._internal.abort import AbortSignal, any_signal, race, timeout_signal
from modelgate._internal.exceptions import ProviderInitError
from modelgate._internal.mapping import merge_deep, stable_hash
from modelgate.adapters import get_builtin_adapter, is_openai_compatible
from modelgate.adapters.base import Fetch, close_adapter, default_fetch
from modelgate.adapters.loader import load_constructor
from modelgate.provider.schema import Model, ProviderInfo

logger = logging.getLogger(__name__)


def compose_options(provider: ProviderInfo, model: Model) -> Dict[str, Any]:
    """Return the adapter construction options for ``model``.

    Provider options are copied and completed with defaults derived from the
    model and provider; explicit provider options always win.
    """
    options = merge_deep(provider.options, {})
    if is_openai_compatible(model.api.module) and "include_usage" not in options:
        options["include_usage"] = True
    if "base_url" not in options and model.api.url:
        options["base_url"] = model.api.url
    if "api_key" not in options and provider.key:
        options["api_key"] = provider.key
    if model.headers:
        options["headers"] = {**(options.get("headers") or {}), **model.headers}
    return options


def with_timeout(fetch: Fetch, timeout: Any) -> Fetch:
    """Wrap ``fetch`` so each request honours ``timeout`` milliseconds.

    ``None`` returns ``fetch`` unchanged. ``False`` disables the deadline and
    keeps only the caller's signal. Any other value races the request against
    whichever of the deadline or the caller's signal fires first.
    """
    if timeout is None:
        return fetch

    async def timed_fetch(request: Any, *, signal: Optional[AbortSignal] = None) -> Any:
        if timeout is False:
            return await fetch(request, signal=signal)
        with timeout_signal(timeout) as deadline:
            parents = [deadline] if signal is None else [signal, deadline]
            with any_signal(parents) as combined:
                return await race(fetch(request, signal=combined), combined)

    return timed_fetch


class AdapterFactory:
    """Resolve models to adapters, constructing each distinct adapter once.

    Attributes:
        providers: Provider table the factory resolves against.
    """

    def __init__(self, providers: Mapping[str, ProviderInfo]) -> None:
        self.providers = providers
        self._adapters: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def adapters(self) -> List[Any]:
        """Return every adapter constructed so far."""
        with self._lock:
            return list(self._adapters.values())

    async def resolve(self, model: Model) -> Any:
        """Return the adapter serving ``model``.

        Raises:
            ProviderInitError: If the provider is unknown or the adapter
                cannot be loaded or constructed. The cause is chained.
        """
        provider_id = model.provider_id
        try:
            return await self._resolve(model)
        except ProviderInitError:
            raise
        except Exception as exc:
            raise ProviderInitError(
                provider_id, f"Failed to initialize provider '{provider_id}': {exc}"
            ) from exc

    async def _resolve(self, model: Model) -> Any:
        provider = self.providers.get(model.provider_id)
        if provider is None:
            raise KeyError(f"Provider '{model.provider_id}' is not in the provider table")

        module = model.api.module
        options = compose_options(provider, model)
        key = stable_hash({"module": module, "options": options})

        cached = self._adapters.get(key)
        if cached is not None:
            logger.debug("adapter cache hit for %s (%s)", provider.id, module)
            return cached

        started = time.perf_counter()
        timeout = options.pop("timeout", None)
        options["fetch"] = with_timeout(options.get("fetch") or default_fetch, timeout)

        constructor = get_builtin_adapter(module)
        if constructor is not None:
            logger.info("using bundled adapter %s for %s", module, provider.id)
        else:
            constructor = await load_constructor(module)

        adapter = constructor(**{"name": provider.id, **options})
        if inspect.isawaitable(adapter):
            adapter = await adapter

        with self._lock:
            winner = self._adapters.setdefault(key, adapter)
        if winner is not adapter:
            await close_adapter(adapter)
            adapter = winner
        logger.debug(
            "adapter for %s ready in %.1fms", provider.id, (time.perf_counter() - started) * 1000
        )
        return adapter


__all__ = ["AdapterFactory", "compose_options", "with_timeout"]
