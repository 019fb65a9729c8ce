"""Catalog sources supplying baseline provider and model metadata.

A source is anything with an async ``load()`` returning provider id to
:class:`CatalogProvider`. Sources are queried once per registry build.

Examples:
    >>> catalog = StaticCatalog({"demo": {"name": "Demo", "models": {"m": {}}}})
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from modelgate._internal.exceptions import CatalogError
from modelgate.catalog.types import CatalogProvider

logger = logging.getLogger(__name__)

DEFAULT_MODELS_URL = "https://models.dev/api.json"

Catalog = Dict[str, CatalogProvider]


class CatalogSource(Protocol):
    """Interface every catalog source implements."""

    async def load(self) -> Catalog:
        """Return the catalog snapshot."""


def parse_catalog(raw: Mapping[str, Any]) -> Catalog:
    """Validate raw catalog data, skipping malformed providers.

    Provider and model ids default to their mapping keys.
    """
    if not isinstance(raw, Mapping):
        raise CatalogError(
            "Catalog data must be a mapping",
            context={"value_type": type(raw).__name__},
        )

    catalog: Catalog = {}
    for provider_id, entry in raw.items():
        if not isinstance(entry, Mapping):
            logger.warning("skipping catalog provider %s: expected a mapping", provider_id)
            continue
        data = dict(entry)
        data.setdefault("id", provider_id)
        data.setdefault("name", provider_id)
        models = data.get("models") or {}
        if isinstance(models, Mapping):
            data["models"] = {
                model_id: {"id": model_id, **model} if isinstance(model, Mapping) else model
                for model_id, model in models.items()
            }
        try:
            catalog[provider_id] = CatalogProvider.model_validate(data)
        except ValidationError as exc:
            logger.warning("skipping catalog provider %s: %s", provider_id, exc)
    return catalog


class StaticCatalog:
    """Catalog backed by an in-memory mapping."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    async def load(self) -> Catalog:
        return parse_catalog(self._data)


class JsonFileCatalog:
    """Catalog read from a JSON file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    async def load(self) -> Catalog:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError as exc:
            raise CatalogError("Catalog file not found", context={"path": str(self.path)}) from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogError(
                "Catalog file could not be read", context={"path": str(self.path)}
            ) from exc
        return parse_catalog(raw)


class ModelsDevCatalog:
    """Catalog fetched from models.dev and cached on disk.

    The cached copy is preferred; the network is only used when no cache
    exists or :meth:`refresh` is called explicitly.

    Attributes:
        url: Endpoint serving the catalog JSON.
        cache_path: Location of the cached copy.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        cache_path: Optional[Path] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = url or os.environ.get("MODELGATE_MODELS_URL", DEFAULT_MODELS_URL)
        default_cache = Path.home() / ".modelgate" / "cache" / "models.json"
        self.cache_path = Path(cache_path or os.environ.get("MODELGATE_MODELS_PATH", default_cache))
        self._transport = transport
        self._timeout = timeout

    async def load(self) -> Catalog:
        raw = self._read_cache()
        if raw is None:
            raw = await self.refresh()
        return parse_catalog(raw)

    async def refresh(self) -> Dict[str, Any]:
        """Fetch the catalog and rewrite the cache."""
        try:
            raw = await self._fetch()
        except httpx.HTTPError as exc:
            raise CatalogError("Failed to fetch model catalog", context={"url": self.url}) from exc
        self._write_cache(raw)
        return raw

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _fetch(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return response.json()

    def _read_cache(self) -> Optional[Dict[str, Any]]:
        if not self.cache_path.exists():
            return None
        try:
            with self.cache_path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, json.JSONDecodeError):
            logger.warning("ignoring unreadable catalog cache %s", self.cache_path)
            return None

    def _write_cache(self, raw: Mapping[str, Any]) -> None:
        self.cache_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.cache_path.parent), prefix="models-", suffix=".json.tmp"
        )
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                json.dump(raw, fh)
            os.replace(tmp_path, self.cache_path)
        finally:
            tmp_path.unlink(missing_ok=True)


__all__ = [
    "Catalog",
    "CatalogSource",
    "DEFAULT_MODELS_URL",
    "JsonFileCatalog",
    "ModelsDevCatalog",
    "StaticCatalog",
    "parse_catalog",
]
