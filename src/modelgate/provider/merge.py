"""Merge catalog, configuration, credentials, and plugins into provider records.

Layers are applied in order and later layers win field by field:

1. catalog entries become candidates (``source="custom"``),
2. configured providers and models override or extend the candidates,
3. environment variables and stored API keys activate providers,
4. plugin auth loaders contribute options for providers with stored credentials,
5. built-in custom loaders contribute options and model loaders,
6. explicit configuration (name, env, options) is re-asserted.

Only providers activated by layers 3 to 6 reach the returned table. The merge
performs no I/O of its own beyond awaiting the loaders it is handed.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence

from pydantic import ValidationError

from modelgate._internal.mapping import merge_deep
from modelgate.catalog.types import CatalogCost, CatalogInterleaved, CatalogModel, CatalogProvider
from modelgate.config.schema import ModelOverride, ProviderConfig, RegistryConfig
from modelgate.credentials import CredentialStore
from modelgate.plugins import Plugin
from modelgate.provider.loaders import CustomLoader, CustomModelLoader
from modelgate.provider.schema import ProviderInfo

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

MODALITIES = ("text", "audio", "image", "video", "pdf")


@dataclass(frozen=True)
class MergeResult:
    providers: Dict[str, ProviderInfo] = field(default_factory=dict)
    model_loaders: Dict[str, CustomModelLoader] = field(default_factory=dict)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _first(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _lookup(record: Optional[Mapping[str, Any]], *path: str) -> Any:
    current: Any = record
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _modalities(values: Optional[Sequence[str]]) -> Dict[str, bool]:
    present = set(values or ())
    return {modality: modality in present for modality in MODALITIES}


def _interleaved(value: Any) -> Any:
    if isinstance(value, CatalogInterleaved):
        return value.model_dump()
    return value


def _tier_cost(cost: CatalogCost) -> Record:
    return {
        "input": cost.input,
        "output": cost.output,
        "cache": {"read": cost.cache_read or 0, "write": cost.cache_write or 0},
    }


def model_from_catalog(provider: CatalogProvider, model: CatalogModel) -> Record:
    """Convert a catalog model into a model record."""
    cost = model.cost or CatalogCost()
    modalities = model.modalities
    module = model.provider.npm if model.provider and model.provider.npm else None
    return {
        "id": model.id,
        "provider_id": provider.id,
        "name": model.name or model.id,
        "family": model.family,
        "api": {
            "id": model.id,
            "url": provider.api,
            "module": module or provider.npm or provider.id,
        },
        "status": model.status or "active",
        "headers": dict(model.headers),
        "options": dict(model.options),
        "cost": {
            **_tier_cost(cost),
            "experimental_over_200k": (
                _tier_cost(cost.context_over_200k) if cost.context_over_200k else None
            ),
        },
        "limit": {"context": model.limit.context, "output": model.limit.output},
        "capabilities": {
            "temperature": model.temperature,
            "reasoning": model.reasoning,
            "attachment": model.attachment,
            "toolcall": model.tool_call,
            "input": _modalities(modalities.input if modalities else None),
            "output": _modalities(modalities.output if modalities else None),
            "interleaved": _first(_interleaved(model.interleaved), default=False),
        },
        "release_date": model.release_date,
    }


def provider_from_catalog(provider: CatalogProvider) -> Record:
    """Convert a catalog provider into a candidate provider record."""
    return {
        "id": provider.id,
        "name": provider.name or provider.id,
        "source": "custom",
        "env": list(provider.env),
        "options": {},
        "models": {
            model_id: model_from_catalog(provider, model)
            for model_id, model in provider.models.items()
        },
    }


def _override_modalities(
    requested: Optional[Sequence[str]], existing: Optional[Mapping[str, Any]]
) -> Dict[str, bool]:
    if requested is not None:
        return _modalities(requested)
    flags = {}
    for modality in MODALITIES:
        flags[modality] = _first(_lookup(existing, modality), default=modality == "text")
    return flags


def apply_model_override(
    provider_id: str,
    model_id: str,
    override: ModelOverride,
    provider_config: ProviderConfig,
    existing: Optional[Record],
    catalog_provider: Optional[CatalogProvider],
) -> Record:
    """Build a model record from configuration, falling back to ``existing``.

    Unset fields fall back to the catalog model, then to defaults: tool calling
    and text input/output enabled, every other flag disabled, numbers zero.
    """
    if override.name:
        name = override.name
    elif override.id and override.id != model_id:
        name = model_id
    else:
        name = _first(_lookup(existing, "name"), default=model_id)

    caps = _lookup(existing, "capabilities")
    cost = override.cost
    limit = override.limit
    modalities = override.modalities
    module = override.provider.npm if override.provider and override.provider.npm else None

    return {
        "id": model_id,
        "provider_id": provider_id,
        "name": name,
        "family": _first(override.family, _lookup(existing, "family")),
        "release_date": _first(override.release_date, _lookup(existing, "release_date"), default=""),
        "status": _first(override.status, _lookup(existing, "status"), default="active"),
        "api": {
            "id": _first(override.id, _lookup(existing, "api", "id"), default=model_id),
            "url": _first(
                provider_config.api,
                _lookup(existing, "api", "url"),
                catalog_provider.api if catalog_provider else None,
            ),
            "module": _first(
                module,
                provider_config.npm,
                _lookup(existing, "api", "module"),
                catalog_provider.npm if catalog_provider else None,
                default=provider_id,
            ),
        },
        "capabilities": {
            "temperature": _first(override.temperature, _lookup(caps, "temperature"), default=False),
            "reasoning": _first(override.reasoning, _lookup(caps, "reasoning"), default=False),
            "attachment": _first(override.attachment, _lookup(caps, "attachment"), default=False),
            "toolcall": _first(override.tool_call, _lookup(caps, "toolcall"), default=True),
            "input": _override_modalities(
                modalities.input if modalities else None, _lookup(caps, "input")
            ),
            "output": _override_modalities(
                modalities.output if modalities else None, _lookup(caps, "output")
            ),
            "interleaved": _first(
                _interleaved(override.interleaved), _lookup(caps, "interleaved"), default=False
            ),
        },
        "cost": {
            "input": _first(cost and cost.input, _lookup(existing, "cost", "input"), default=0),
            "output": _first(cost and cost.output, _lookup(existing, "cost", "output"), default=0),
            "cache": {
                "read": _first(
                    cost and cost.cache_read, _lookup(existing, "cost", "cache", "read"), default=0
                ),
                "write": _first(
                    cost and cost.cache_write, _lookup(existing, "cost", "cache", "write"), default=0
                ),
            },
            "experimental_over_200k": _lookup(existing, "cost", "experimental_over_200k"),
        },
        "limit": {
            "context": _first(
                limit and limit.context, _lookup(existing, "limit", "context"), default=0
            ),
            "output": _first(limit and limit.output, _lookup(existing, "limit", "output"), default=0),
        },
        "options": merge_deep(_lookup(existing, "options") or {}, override.options),
        "headers": merge_deep(_lookup(existing, "headers") or {}, override.headers),
    }


def apply_provider_config(
    provider_id: str,
    provider_config: ProviderConfig,
    existing: Optional[Record],
    catalog_provider: Optional[CatalogProvider],
) -> Record:
    """Merge configured provider overrides onto the catalog candidate, if any."""
    record: Record = {
        "id": provider_id,
        "name": _first(provider_config.name, _lookup(existing, "name"), default=provider_id),
        "env": list(_first(provider_config.env, _lookup(existing, "env"), default=[])),
        "options": merge_deep(_lookup(existing, "options") or {}, provider_config.options or {}),
        "source": "config",
        "models": dict(_lookup(existing, "models") or {}),
    }

    for model_id, override in provider_config.models.items():
        existing_model = record["models"].get(override.id or model_id)
        record["models"][model_id] = apply_model_override(
            provider_id, model_id, override, provider_config, existing_model, catalog_provider
        )
    return record


def _snapshot(record: Optional[Record]) -> Optional[ProviderInfo]:
    if record is None:
        return None
    try:
        return ProviderInfo.model_validate(record)
    except ValidationError as exc:
        logger.debug("no snapshot for provider %s: %s", record.get("id"), exc)
        return None


class _Layers:
    """Candidate records plus the subset activated so far."""

    def __init__(self, candidates: Dict[str, Record]) -> None:
        self.candidates = candidates
        self.active: Dict[str, Record] = {}

    def best_known(self, provider_id: str) -> Optional[Record]:
        return self.active.get(provider_id) or self.candidates.get(provider_id)

    def merge(self, provider_id: str, partial: Mapping[str, Any]) -> None:
        base = self.best_known(provider_id)
        if base is None:
            return
        self.active[provider_id] = merge_deep(base, partial)


async def build_provider_table(
    *,
    catalog: Mapping[str, CatalogProvider],
    config: RegistryConfig,
    env: Mapping[str, str],
    credentials: CredentialStore,
    plugins: Sequence[Plugin] = (),
    custom_loaders: Optional[Mapping[str, CustomLoader]] = None,
) -> MergeResult:
    """Run every merge layer and return the unfiltered provider table.

    Args:
        catalog: Baseline providers keyed by id.
        config: Validated user configuration.
        env: Environment snapshot used for credential lookup.
        credentials: Persisted credential store.
        plugins: Plugins whose auth loaders may contribute options.
        custom_loaders: Built-in provider loaders keyed by provider id.

    Returns:
        MergeResult with providers and any custom model loaders.
    """
    disabled = set(config.disabled_providers)

    candidates: Dict[str, Record] = {
        provider_id: provider_from_catalog(provider) for provider_id, provider in catalog.items()
    }
    for provider_id, provider_config in config.provider.items():
        candidates[provider_id] = apply_provider_config(
            provider_id, provider_config, candidates.get(provider_id), catalog.get(provider_id)
        )

    layers = _Layers(candidates)

    for provider_id, record in candidates.items():
        if provider_id in disabled or record.get("key"):
            continue
        names = record.get("env") or []
        present = {name: env[name] for name in names if env.get(name)}
        if not present:
            continue
        partial: Record = {"source": "env"}
        if len(names) == 1:
            partial["key"] = present[names[0]]
        else:
            # Several candidate variables: leave the key for the adapter to pick.
            partial["options"] = {"env": present}
        layers.merge(provider_id, partial)

    for provider_id, credential in credentials.all().items():
        if provider_id in disabled:
            continue
        if credential.type == "api":
            layers.merge(provider_id, {"source": "api", "key": credential.key})

    for plugin in plugins:
        if plugin.auth is None or plugin.auth.loader is None:
            continue
        provider_id = plugin.auth.provider
        if provider_id in disabled or credentials.get(provider_id) is None:
            continue
        info = _snapshot(layers.best_known(provider_id))
        try:
            options = await _resolve(
                plugin.auth.loader(lambda pid=provider_id: credentials.get(pid), info)
            )
        except Exception:
            logger.exception("plugin %s failed to load auth for %s", plugin.name, provider_id)
            continue
        layers.merge(provider_id, {"source": "custom", "options": dict(options or {})})

    model_loaders: Dict[str, CustomModelLoader] = {}
    for provider_id, loader in (custom_loaders or {}).items():
        if provider_id in disabled:
            continue
        try:
            result = await _resolve(loader(_snapshot(layers.best_known(provider_id))))
        except Exception:
            logger.exception("custom loader failed for %s", provider_id)
            continue
        if result is None or not (result.autoload or provider_id in layers.active):
            continue
        layers.merge(provider_id, {"source": "custom", "options": dict(result.options or {})})
        if result.get_model is not None and provider_id in layers.active:
            model_loaders[provider_id] = result.get_model

    for provider_id, provider_config in config.provider.items():
        partial = {"source": "config"}
        if provider_config.env:
            partial["env"] = list(provider_config.env)
        if provider_config.name:
            partial["name"] = provider_config.name
        if provider_config.options:
            partial["options"] = provider_config.options
        layers.merge(provider_id, partial)

    providers: Dict[str, ProviderInfo] = {}
    for provider_id, record in layers.active.items():
        try:
            providers[provider_id] = ProviderInfo.model_validate(record)
        except ValidationError as exc:
            logger.warning("dropping provider %s: %s", provider_id, exc)

    return MergeResult(
        providers=providers,
        model_loaders={pid: fn for pid, fn in model_loaders.items() if pid in providers},
    )


__all__ = [
    "MergeResult",
    "apply_model_override",
    "apply_provider_config",
    "build_provider_table",
    "model_from_catalog",
    "provider_from_catalog",
]
