"""Configuration schema module.

This module defines the user-authored overrides consumed by the provider
registry. Unknown keys are tolerated so configuration files can carry
settings for other tools.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from modelgate.catalog.types import CatalogInterleaved, Modality


class _Section(BaseModel):
    # Allow arbitrary extension
    model_config = {"extra": "allow"}


class ModelCostOverride(_Section):
    input: Optional[float] = None
    output: Optional[float] = None
    cache_read: Optional[float] = None
    cache_write: Optional[float] = None


class ModelLimitOverride(_Section):
    context: Optional[int] = None
    output: Optional[int] = None


class ModalitiesOverride(_Section):
    input: Optional[List[Modality]] = None
    output: Optional[List[Modality]] = None


class ModelProviderOverride(_Section):
    npm: Optional[str] = None


class ModelOverride(_Section):
    """Per-model overrides. Every field is optional.

    Attributes:
        id: Identifier sent to the adapter when it differs from the key.
        tool_call: Tool-calling support; defaults to enabled for new models.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    family: Optional[str] = None
    release_date: Optional[str] = None
    status: Optional[Literal["alpha", "beta", "deprecated", "active"]] = None
    attachment: Optional[bool] = None
    reasoning: Optional[bool] = None
    temperature: Optional[bool] = None
    tool_call: Optional[bool] = None
    interleaved: Optional[Union[bool, CatalogInterleaved]] = None
    cost: Optional[ModelCostOverride] = None
    limit: Optional[ModelLimitOverride] = None
    modalities: Optional[ModalitiesOverride] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    provider: Optional[ModelProviderOverride] = None


class ProviderConfig(_Section):
    """Per-provider overrides.

    Attributes:
        api: Base URL applied to every model of the provider.
        npm: Client module reference for the provider's models.
        blacklist: Model ids hidden from the registry.
        whitelist: When set, the only model ids kept.
    """

    name: Optional[str] = None
    env: Optional[List[str]] = None
    options: Optional[Dict[str, Any]] = None
    npm: Optional[str] = None
    api: Optional[str] = None
    blacklist: Optional[List[str]] = None
    whitelist: Optional[List[str]] = None
    models: Dict[str, ModelOverride] = Field(default_factory=dict)


class RegistryConfig(_Section):
    """Root configuration consumed by the provider registry.

    Attributes:
        model: Default model as ``provider/model``.
        small_model: Default small model as ``provider/model``.
        enabled_providers: When set, the only providers kept.
        disabled_providers: Providers always removed.
        provider: Per-provider overrides keyed by provider id.
    """

    model: Optional[str] = None
    small_model: Optional[str] = None
    enabled_providers: Optional[List[str]] = None
    disabled_providers: List[str] = Field(default_factory=list)
    provider: Dict[str, ProviderConfig] = Field(default_factory=dict)

    def get_provider(self, provider_id: str) -> Optional[ProviderConfig]:
        """Return the overrides for ``provider_id``, if configured."""
        return self.provider.get(provider_id)


__all__ = [
    "ModalitiesOverride",
    "ModelCostOverride",
    "ModelLimitOverride",
    "ModelOverride",
    "ModelProviderOverride",
    "ProviderConfig",
    "RegistryConfig",
]
