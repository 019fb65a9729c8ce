"""Process-wide provider registry.

The registry builds the provider table once (catalog, configuration,
credentials and plugins merged, then filtered by policy) and serves model
lookups, default selection and cached language-model handles from it.

Examples:
    >>> registry = ProviderRegistry(catalog=StaticCatalog({}))  # doctest: +SKIP
    >>> model = await registry.get_model("openai", "gpt-5")  # doctest: +SKIP
    >>> handle = await registry.get_language(model)  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import atexit
import inspect
import logging
import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence

from modelgate._internal.exceptions import ModelSelectionError, ProviderModelNotFoundError
from modelgate._internal.flags import enable_experimental_models
from modelgate.adapters.base import NoSuchModelError, close_adapter
from modelgate.catalog.sources import CatalogSource, ModelsDevCatalog
from modelgate.config.loader import load_config
from modelgate.config.schema import RegistryConfig
from modelgate.credentials import CredentialStore, FileCredentialStore, read_environment
from modelgate.plugins import Plugin, list_plugins
from modelgate.provider.factory import AdapterFactory
from modelgate.provider.loaders import CUSTOM_LOADERS, CustomLoader, CustomModelLoader
from modelgate.provider.merge import build_provider_table
from modelgate.provider.policy import apply_policy
from modelgate.provider.schema import Model, ProviderInfo
from modelgate.provider.selection import (
    SMALL_MODEL_FALLBACK,
    SMALL_MODEL_PRIORITY,
    ModelRef,
    closest,
    parse_model,
    sort,
    suggest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryState:
    """Immutable result of one registry build."""

    config: RegistryConfig
    providers: Mapping[str, ProviderInfo]
    model_loaders: Mapping[str, CustomModelLoader]
    factory: AdapterFactory
    languages: Dict[str, Any] = field(default_factory=dict)


class ProviderRegistry:
    """Lazily built, memoized view of the available providers and models.

    Every collaborator can be supplied explicitly; those left unset are read
    from the environment when the state is first built.
    """

    def __init__(
        self,
        *,
        catalog: Optional[CatalogSource] = None,
        config: Optional[RegistryConfig] = None,
        credentials: Optional[CredentialStore] = None,
        env: Optional[Mapping[str, str]] = None,
        plugins: Optional[Sequence[Plugin]] = None,
        custom_loaders: Optional[Mapping[str, CustomLoader]] = None,
        enable_experimental: Optional[bool] = None,
    ) -> None:
        self._catalog = catalog
        self._config = config
        self._credentials = credentials
        self._env = env
        self._plugins = plugins
        self._custom_loaders = custom_loaders
        self._enable_experimental = enable_experimental

        self._state: Optional[RegistryState] = None
        self._building: Optional[asyncio.Task[RegistryState]] = None
        self._lock = threading.Lock()

    async def state(self) -> RegistryState:
        """Return the registry state, building it on first use.

        Concurrent callers share a single build. A failed build is not
        remembered; the next call starts a new one.
        """
        if self._state is not None:
            return self._state

        task = self._building
        if task is None or (task.done() and (task.cancelled() or task.exception() is not None)):
            task = asyncio.ensure_future(self._build())
            self._building = task

        try:
            state = await asyncio.shield(task)
        except BaseException:
            if task.done() and self._building is task:
                self._building = None
            raise

        self._state = state
        return state

    async def _build(self) -> RegistryState:
        logger.info("init")
        started = time.perf_counter()

        config = self._config if self._config is not None else load_config()
        catalog = await (self._catalog or ModelsDevCatalog()).load()
        merged = await build_provider_table(
            catalog=catalog,
            config=config,
            env=self._env if self._env is not None else read_environment(),
            credentials=self._credentials if self._credentials is not None else FileCredentialStore(),
            plugins=self._plugins if self._plugins is not None else list_plugins(),
            custom_loaders=self._custom_loaders if self._custom_loaders is not None else CUSTOM_LOADERS,
        )
        enable_experimental = (
            self._enable_experimental
            if self._enable_experimental is not None
            else enable_experimental_models()
        )
        providers = MappingProxyType(
            apply_policy(merged.providers, config, enable_experimental=enable_experimental)
        )

        logger.debug(
            "registry built with %d providers in %.1fms",
            len(providers),
            (time.perf_counter() - started) * 1000,
        )
        return RegistryState(
            config=config,
            providers=providers,
            model_loaders=MappingProxyType(dict(merged.model_loaders)),
            factory=AdapterFactory(providers),
        )

    async def list_providers(self) -> Mapping[str, ProviderInfo]:
        """Return the read-only provider table."""
        return (await self.state()).providers

    async def get_provider(self, provider_id: str) -> Optional[ProviderInfo]:
        return (await self.state()).providers.get(provider_id)

    async def get_model(self, provider_id: str, model_id: str) -> Model:
        """Return the model ``model_id`` served by ``provider_id``.

        Raises:
            ProviderModelNotFoundError: With up to three similar provider ids
                when the provider is unknown, or up to three similar model ids
                when the model is unknown.
        """
        providers = (await self.state()).providers
        provider = providers.get(provider_id)
        if provider is None:
            raise ProviderModelNotFoundError(
                provider_id, model_id, suggestions=suggest(provider_id, providers)
            )
        model = provider.models.get(model_id)
        if model is None:
            raise ProviderModelNotFoundError(
                provider_id, model_id, suggestions=suggest(model_id, provider.models)
            )
        return model

    async def get_language(self, model: Model) -> Any:
        """Return a cached, ready-to-invoke handle for ``model``.

        Raises:
            ProviderInitError: If the adapter cannot be built.
            ProviderModelNotFoundError: If the adapter does not serve the model.
        """
        state = await self.state()
        key = f"{model.provider_id}/{model.id}"
        cached = state.languages.get(key)
        if cached is not None:
            return cached

        adapter = await state.factory.resolve(model)
        loader = state.model_loaders.get(model.provider_id)
        provider = state.providers.get(model.provider_id)
        try:
            if loader is not None:
                handle = loader(adapter, model.api.id, provider.options if provider else {})
                if inspect.isawaitable(handle):
                    handle = await handle
            else:
                handle = adapter.language_model(model.api.id)
        except NoSuchModelError as exc:
            raise ProviderModelNotFoundError(model.provider_id, model.id) from exc

        with self._lock:
            return state.languages.setdefault(key, handle)

    async def default_model(self) -> Model:
        """Return the configured main model, else the best model of the first usable provider.

        Raises:
            ModelSelectionError: If no provider or model is available.
            ProviderModelNotFoundError: If the configured model does not resolve.
        """
        state = await self.state()
        if state.config.model:
            return await self.get_model(*parse_model(state.config.model))

        configured = state.config.provider
        provider = next(
            (
                info
                for provider_id, info in state.providers.items()
                if not configured or provider_id in configured
            ),
            None,
        )
        if provider is None:
            raise ModelSelectionError("No providers found")
        ranked = sort(provider.models.values())
        if not ranked:
            raise ModelSelectionError(
                "No models found", context={"provider_id": provider.id}
            )
        return ranked[0]

    async def small_model(self, provider_id: str) -> Optional[Model]:
        """Return a small, cheap model for auxiliary work, if one is available."""
        state = await self.state()
        if state.config.small_model:
            return await self.get_model(*parse_model(state.config.small_model))

        provider = state.providers.get(provider_id)
        if provider is not None:
            for fragment in SMALL_MODEL_PRIORITY:
                for model_id, model in provider.models.items():
                    if fragment in model_id:
                        return model

        fallback_provider, fallback_model = SMALL_MODEL_FALLBACK
        fallback = state.providers.get(fallback_provider)
        if fallback is not None:
            return fallback.models.get(fallback_model)
        return None

    async def closest(self, provider_id: str, queries: Sequence[str]) -> Optional[ModelRef]:
        """Return the first model of ``provider_id`` whose id contains a query."""
        return closest(await self.get_provider(provider_id), queries)

    async def aclose(self) -> None:
        """Close constructed adapters and forget the built state."""
        state, self._state, self._building = self._state, None, None
        if state is None:
            return
        for adapter in state.factory.adapters():
            await close_adapter(adapter)


_registry: Optional[ProviderRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> ProviderRegistry:
    """Return the process-wide registry, creating it on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ProviderRegistry()
    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry so the next access rebuilds it.

    Adapters are not closed; await :meth:`ProviderRegistry.aclose` first when
    they hold resources.
    """
    global _registry
    with _registry_lock:
        _registry = None


atexit.register(reset_registry)


__all__ = ["ProviderRegistry", "RegistryState", "get_registry", "reset_registry"]
