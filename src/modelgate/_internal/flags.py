"""Process-level feature flags read from the environment."""

from __future__ import annotations

import os

_TRUTHY = {"1", "true", "yes", "on"}


def _truthy(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def enable_experimental_models() -> bool:
    """Return True when alpha-status models should stay visible."""
    return _truthy("MODELGATE_ENABLE_EXPERIMENTAL_MODELS")


def auto_install_adapters() -> bool:
    """Return True unless ``MODELGATE_DISABLE_ADAPTER_INSTALL`` is set."""
    return not _truthy("MODELGATE_DISABLE_ADAPTER_INSTALL")


__all__ = ["auto_install_adapters", "enable_experimental_models"]
