"""Helpers for free-form option mappings."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


def merge_deep(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge two mappings without mutating either.

    Nested mappings merge key by key; every other value (lists included) from
    ``override`` replaces the value in ``base``.

    Args:
        base: Mapping providing default values.
        override: Mapping whose values take precedence.

    Returns:
        A new dictionary.

    Examples:
        >>> merge_deep({"headers": {"a": "1"}, "timeout": 5}, {"headers": {"b": "2"}})
        {'headers': {'a': '1', 'b': '2'}, 'timeout': 5}
    """
    result: dict[str, Any] = {key: _copy(value) for key, value in base.items()}

    for key, value in override.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_deep(existing, value)
        else:
            result[key] = _copy(value)

    return result


def _copy(value: Any) -> Any:
    # Containers are rebuilt; leaves (clients, callables, ...) are shared.
    if isinstance(value, Mapping):
        return {key: _copy(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_copy(item) for item in value]
    return value


def freeze(value: Any) -> Any:
    """Return a read-only view of ``value``.

    Mappings become ``MappingProxyType`` and lists become tuples, recursively.
    Other values are returned unchanged.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`: rebuild plain dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


def _encode(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if callable(value):
        # Callables only need to be distinguishable within one process.
        module = getattr(value, "__module__", None) or "?"
        name = getattr(value, "__qualname__", None) or type(value).__qualname__
        return f"<callable {module}.{name}@{id(value):x}>"
    return repr(value)


def stable_hash(value: Any) -> str:
    """Return a hex digest of the canonical JSON encoding of ``value``."""
    payload = json.dumps(value, sort_keys=True, separators=(",", ":"), default=_encode)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


__all__ = ["freeze", "merge_deep", "stable_hash", "thaw"]
