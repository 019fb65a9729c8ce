"""Visibility policy applied once to the merged provider table."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Mapping

from modelgate.config.schema import ProviderConfig, RegistryConfig
from modelgate.provider.schema import Model, ProviderInfo

logger = logging.getLogger(__name__)


def is_provider_allowed(provider_id: str, config: RegistryConfig) -> bool:
    """Return False when the enable/disable sets exclude ``provider_id``."""
    if config.enabled_providers is not None and provider_id not in config.enabled_providers:
        return False
    return provider_id not in config.disabled_providers


def is_model_allowed(
    model: Model,
    provider_config: ProviderConfig | None,
    *,
    enable_experimental: bool,
) -> bool:
    """Return False for gated alpha models and models excluded by allow/deny lists.

    A blacklist entry wins over a whitelist entry for the same id.
    """
    if model.status == "alpha" and not enable_experimental:
        return False
    if provider_config is None:
        return True
    if provider_config.blacklist and model.id in provider_config.blacklist:
        return False
    if provider_config.whitelist is not None and model.id not in provider_config.whitelist:
        return False
    return True


def apply_policy(
    providers: Mapping[str, ProviderInfo],
    config: RegistryConfig,
    *,
    enable_experimental: bool = False,
) -> Dict[str, ProviderInfo]:
    """Return a new table with disallowed providers and models removed.

    Providers left without models are dropped. The input is not modified and
    applying the policy to its own output returns an equal table.
    """
    result: Dict[str, ProviderInfo] = {}
    for provider_id, provider in providers.items():
        if not is_provider_allowed(provider_id, config):
            continue

        provider_config = config.get_provider(provider_id)
        models = {
            model_id: model
            for model_id, model in provider.models.items()
            if is_model_allowed(model, provider_config, enable_experimental=enable_experimental)
        }
        if not models:
            continue

        if len(models) != len(provider.models):
            provider = provider.model_copy(update={"models": MappingProxyType(models)})
        result[provider_id] = provider
        logger.info("found provider %s", provider_id)
    return result


__all__ = ["apply_policy", "is_model_allowed", "is_provider_allowed"]
