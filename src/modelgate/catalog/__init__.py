"""Baseline provider/model metadata sources."""

from modelgate.catalog.sources import (
    DEFAULT_MODELS_URL,
    Catalog,
    CatalogSource,
    JsonFileCatalog,
    ModelsDevCatalog,
    StaticCatalog,
    parse_catalog,
)
from modelgate.catalog.types import CatalogModel, CatalogProvider

__all__ = [
    "Catalog",
    "CatalogModel",
    "CatalogProvider",
    "CatalogSource",
    "DEFAULT_MODELS_URL",
    "JsonFileCatalog",
    "ModelsDevCatalog",
    "StaticCatalog",
    "parse_catalog",
]
