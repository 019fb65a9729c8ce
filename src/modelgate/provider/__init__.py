"""Provider table construction, policy, adapter resolution and model selection."""

from modelgate.provider.factory import AdapterFactory
from modelgate.provider.loaders import CUSTOM_LOADERS, CustomLoaderResult
from modelgate.provider.merge import MergeResult, build_provider_table
from modelgate.provider.policy import apply_policy
from modelgate.provider.registry import (
    ProviderRegistry,
    RegistryState,
    get_registry,
    reset_registry,
)
from modelgate.provider.schema import Model, ProviderInfo
from modelgate.provider.selection import ModelRef, closest, parse_model, sort, suggest

__all__ = [
    "AdapterFactory",
    "CUSTOM_LOADERS",
    "CustomLoaderResult",
    "MergeResult",
    "Model",
    "ModelRef",
    "ProviderInfo",
    "ProviderRegistry",
    "RegistryState",
    "apply_policy",
    "build_provider_table",
    "closest",
    "get_registry",
    "parse_model",
    "reset_registry",
    "sort",
    "suggest",
]
