"""modelgate: resolve which AI model providers and models are available.

The registry merges a model catalog, user configuration, credentials and
plugins into one provider table, filters it by policy, and lazily builds the
client adapters needed to call each model.

Examples:
    >>> import modelgate
    >>> registry = modelgate.get_registry()  # doctest: +SKIP
    >>> model = await registry.default_model()  # doctest: +SKIP
    >>> handle = await registry.get_language(model)  # doctest: +SKIP
"""

from __future__ import annotations

import importlib.metadata

from modelgate._internal.exceptions import (
    CatalogError,
    ConfigError,
    ConfigValueError,
    CredentialError,
    ModelGateError,
    ModelSelectionError,
    ProviderInitError,
    ProviderModelNotFoundError,
)
from modelgate.adapters import register_adapter, unregister_adapter
from modelgate.config import RegistryConfig, load_config
from modelgate.plugins import Plugin, PluginAuth, register_plugin, unregister_plugin
from modelgate.provider import (
    Model,
    ModelRef,
    ProviderInfo,
    ProviderRegistry,
    get_registry,
    parse_model,
    reset_registry,
    sort,
)

try:
    __version__ = importlib.metadata.version("modelgate")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "CatalogError",
    "ConfigError",
    "ConfigValueError",
    "CredentialError",
    "Model",
    "ModelGateError",
    "ModelRef",
    "ModelSelectionError",
    "Plugin",
    "PluginAuth",
    "ProviderInfo",
    "ProviderInitError",
    "ProviderModelNotFoundError",
    "ProviderRegistry",
    "RegistryConfig",
    "get_registry",
    "load_config",
    "parse_model",
    "register_adapter",
    "register_plugin",
    "reset_registry",
    "sort",
    "unregister_adapter",
    "unregister_plugin",
]
