"""Pydantic models describing providers and the models they serve.

Instances are frozen: once the provider table is built, readers only ever
see immutable snapshots.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_serializer, model_validator

from modelgate._internal.mapping import freeze, thaw

ModelStatus = Literal["alpha", "beta", "deprecated", "active"]
ProviderSource = Literal["env", "config", "custom", "api"]

# Read-only after validation; serialized back to plain dicts.
FrozenOptions = Annotated[Mapping[str, Any], AfterValidator(freeze)]
FrozenHeaders = Annotated[Mapping[str, str], AfterValidator(freeze)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ModelApi(_Frozen):
    """Client binding for a model.

    Attributes:
        id: Identifier passed to the client adapter.
        url: Base endpoint, if the catalog provides one.
        module: Reference used to resolve the client implementation.
    """

    id: str
    url: Optional[str] = None
    module: str


class Modalities(_Frozen):
    text: bool = False
    audio: bool = False
    image: bool = False
    video: bool = False
    pdf: bool = False


class InterleavedField(_Frozen):
    field: Literal["reasoning_content", "reasoning_details"]


class Capabilities(_Frozen):
    temperature: bool = False
    reasoning: bool = False
    attachment: bool = False
    toolcall: bool = True
    input: Modalities = Field(default_factory=lambda: Modalities(text=True))
    output: Modalities = Field(default_factory=lambda: Modalities(text=True))
    interleaved: Union[bool, InterleavedField] = False


class CacheCost(_Frozen):
    read: float = 0
    write: float = 0


class TierCost(_Frozen):
    input: float = 0
    output: float = 0
    cache: CacheCost = Field(default_factory=CacheCost)


class ModelCost(TierCost):
    """Unit prices, with an optional table for usage beyond 200K tokens."""

    experimental_over_200k: Optional[TierCost] = None


class ModelLimit(_Frozen):
    context: int = 0
    output: int = 0


class Model(_Frozen):
    """One invokable model offered by a provider."""

    id: str
    provider_id: str
    api: ModelApi
    name: str
    family: Optional[str] = None
    release_date: str = ""
    status: ModelStatus = "active"
    capabilities: Capabilities = Field(default_factory=Capabilities)
    cost: ModelCost = Field(default_factory=ModelCost)
    limit: ModelLimit = Field(default_factory=ModelLimit)
    options: FrozenOptions = Field(default_factory=dict, validate_default=True)
    headers: FrozenHeaders = Field(default_factory=dict, validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def _default_api_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        api = data.get("api")
        if isinstance(api, dict) and not api.get("id"):
            data = dict(data)
            data["api"] = {**api, "id": data.get("id")}
        return data

    @field_serializer("options", "headers", mode="wrap")
    def _serialize_mapping(self, value: Any, handler: Any) -> Any:
        return handler(thaw(value))


class ProviderInfo(_Frozen):
    """One upstream vendor and the models it serves.

    Attributes:
        source: Mechanism that last supplied or confirmed the credentials.
        env: Environment variable names, first non-empty value wins.
        key: Resolved credential, when unambiguous.
    """

    id: str
    name: str
    source: ProviderSource = "custom"
    env: List[str] = Field(default_factory=list)
    key: Optional[str] = None
    options: FrozenOptions = Field(default_factory=dict, validate_default=True)
    models: Annotated[Mapping[str, Model], AfterValidator(MappingProxyType)] = Field(
        default_factory=dict, validate_default=True
    )

    @field_serializer("options", "models", mode="wrap")
    def _serialize_mapping(self, value: Any, handler: Any) -> Any:
        return handler(thaw(value))


__all__ = [
    "CacheCost",
    "Capabilities",
    "InterleavedField",
    "Modalities",
    "Model",
    "ModelApi",
    "ModelCost",
    "ModelLimit",
    "ModelStatus",
    "ProviderInfo",
    "ProviderSource",
    "TierCost",
]
