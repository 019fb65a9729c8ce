"""Wire types for catalog data in the models.dev ``api.json`` layout."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Modality = Literal["text", "audio", "image", "video", "pdf"]


class _CatalogModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CatalogInterleaved(_CatalogModel):
    field: Literal["reasoning_content", "reasoning_details"]


class CatalogCost(_CatalogModel):
    input: float = 0
    output: float = 0
    cache_read: Optional[float] = None
    cache_write: Optional[float] = None
    context_over_200k: Optional["CatalogCost"] = None


class CatalogLimit(_CatalogModel):
    context: int = 0
    output: int = 0


class CatalogModalities(_CatalogModel):
    input: List[Modality] = Field(default_factory=list)
    output: List[Modality] = Field(default_factory=list)


class CatalogModelProvider(_CatalogModel):
    npm: Optional[str] = None


class CatalogModel(_CatalogModel):
    """Catalog metadata for one model."""

    id: str
    name: str = ""
    family: Optional[str] = None
    release_date: str = ""
    attachment: bool = False
    reasoning: bool = False
    temperature: bool = False
    tool_call: bool = False
    interleaved: Optional[Union[bool, CatalogInterleaved]] = None
    cost: Optional[CatalogCost] = None
    limit: CatalogLimit = Field(default_factory=CatalogLimit)
    modalities: Optional[CatalogModalities] = None
    status: Optional[Literal["alpha", "beta", "deprecated", "active"]] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    provider: Optional[CatalogModelProvider] = None


class CatalogProvider(_CatalogModel):
    """Catalog metadata for one provider.

    Attributes:
        env: Environment variables that may hold the API key.
        api: Base URL shared by the provider's models.
        npm: Client module reference for the provider's models.
    """

    id: str
    name: str = ""
    env: List[str] = Field(default_factory=list)
    api: Optional[str] = None
    npm: Optional[str] = None
    models: Dict[str, CatalogModel] = Field(default_factory=dict)


__all__ = [
    "CatalogCost",
    "CatalogInterleaved",
    "CatalogLimit",
    "CatalogModalities",
    "CatalogModel",
    "CatalogModelProvider",
    "CatalogProvider",
    "Modality",
]
