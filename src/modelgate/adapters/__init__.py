"""Registry of client adapter constructors keyed by module reference.

A provider names its adapter through a module reference such as
``@ai-sdk/openai-compatible``. Built-in references resolve to constructors
shipped with modelgate; anything else is loaded dynamically by
:mod:`modelgate.adapters.loader`. Applications can register their own
constructors at runtime, which take precedence over built-ins.

Examples:
    >>> from modelgate.adapters import register_adapter
    >>> register_adapter('my-adapter', lambda **options: object())  # doctest: +SKIP
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Optional, TypeAlias

from modelgate.adapters.base import BaseAdapter, Fetch, NoSuchModelError, default_fetch

AdapterConstructor: TypeAlias = Callable[..., Any]
AdapterEntry: TypeAlias = str | AdapterConstructor

_OPENAI_COMPATIBLE = "modelgate.adapters.openai_compatible:create_openai_compatible"
_OPENROUTER = "modelgate.adapters.openrouter:create_openrouter"
_OPENAI = "modelgate.adapters.openai_compatible:create_openai"

# Constructors are referenced by module path and imported on first use.
BUILTIN_ADAPTERS: dict[str, AdapterEntry] = {
    "@ai-sdk/openai-compatible": _OPENAI_COMPATIBLE,
    "modelgate.adapters.openai_compatible": _OPENAI_COMPATIBLE,
    "@ai-sdk/openai": _OPENAI,
    "@openrouter/ai-sdk-provider": _OPENROUTER,
    "modelgate.adapters.openrouter": _OPENROUTER,
}

_custom_adapters: dict[str, AdapterConstructor] = {}


def register_adapter(module_ref: str, constructor: AdapterConstructor) -> None:
    """Register a constructor for ``module_ref``.

    The registration is global and persists for the process lifetime. Custom
    constructors take precedence over built-ins with the same reference.

    Raises:
        ValueError: If ``module_ref`` is empty.
        TypeError: If ``constructor`` is not callable.
    """
    if not module_ref:
        raise ValueError("Adapter module reference cannot be empty")
    if not callable(constructor):
        raise TypeError(f"Adapter constructor must be callable, got {constructor!r}")
    _custom_adapters[module_ref] = constructor


def unregister_adapter(module_ref: str) -> bool:
    """Remove a custom constructor. Built-ins cannot be unregistered."""
    if module_ref in _custom_adapters:
        del _custom_adapters[module_ref]
        return True
    return False


def _load_constructor(module_ref: str, entry: AdapterEntry) -> AdapterConstructor:
    if isinstance(entry, str):
        module_path, attr = entry.split(":", 1)
        constructor = getattr(importlib.import_module(module_path), attr)
        BUILTIN_ADAPTERS[module_ref] = constructor
        return constructor
    return entry


def get_builtin_adapter(module_ref: str) -> Optional[AdapterConstructor]:
    """Return the registered or built-in constructor for ``module_ref``, if any."""
    custom = _custom_adapters.get(module_ref)
    if custom is not None:
        return custom
    entry = BUILTIN_ADAPTERS.get(module_ref)
    if entry is None:
        return None
    return _load_constructor(module_ref, entry)


def is_openai_compatible(module_ref: str) -> bool:
    return "openai-compatible" in module_ref or module_ref.endswith("openai_compatible")


def list_adapters() -> list[str]:
    """List every module reference that resolves without dynamic loading."""
    return sorted(set(BUILTIN_ADAPTERS) | set(_custom_adapters))


__all__ = [
    "AdapterConstructor",
    "BUILTIN_ADAPTERS",
    "BaseAdapter",
    "Fetch",
    "NoSuchModelError",
    "default_fetch",
    "get_builtin_adapter",
    "is_openai_compatible",
    "list_adapters",
    "register_adapter",
    "unregister_adapter",
]
