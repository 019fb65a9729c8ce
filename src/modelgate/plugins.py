"""Plugin registration and discovery.

Plugins contribute provider credentials at registry build time. A plugin may
expose ``auth`` for one provider id; its loader receives a credential getter
and the best-known :class:`ProviderInfo` and returns adapter options (for
example derived headers).

Plugins come from two places: explicit :func:`register_plugin` calls and the
``modelgate.plugins`` entry point group. An entry point may reference a
:class:`Plugin` instance or a zero-argument callable returning one.

Examples:
    >>> register_plugin(Plugin(name="demo"))  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Union

from modelgate.credentials import Credential

if TYPE_CHECKING:
    from modelgate.provider.schema import ProviderInfo

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "modelgate.plugins"

CredentialGetter = Callable[[], Optional[Credential]]
AuthLoader = Callable[
    [CredentialGetter, "Optional[ProviderInfo]"],
    Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]],
]


@dataclass(frozen=True)
class PluginAuth:
    """Credential hook for a single provider."""

    provider: str
    loader: Optional[AuthLoader] = None


@dataclass(frozen=True)
class Plugin:
    name: str
    auth: Optional[PluginAuth] = None


_registered: dict[str, Plugin] = {}


def register_plugin(plugin: Plugin) -> None:
    """Register ``plugin`` for the process lifetime, replacing any same-named one."""
    if not isinstance(plugin, Plugin):
        raise TypeError(f"Expected a Plugin, got {type(plugin).__name__}")
    if not plugin.name:
        raise ValueError("Plugin name cannot be empty")
    _registered[plugin.name] = plugin


def unregister_plugin(name: str) -> bool:
    """Remove a registered plugin. Returns False if it was not registered."""
    return _registered.pop(name, None) is not None


def discover_plugins(group: str = ENTRY_POINT_GROUP) -> list[Plugin]:
    """Load plugins advertised through entry points.

    Entry points that fail to load or do not produce a :class:`Plugin` are
    logged and skipped.
    """
    plugins: list[Plugin] = []
    for entry in entry_points(group=group):
        try:
            loaded = entry.load()
            plugin = loaded() if callable(loaded) and not isinstance(loaded, Plugin) else loaded
        except Exception:
            logger.exception("failed to load plugin entry point %s", entry.name)
            continue
        if not isinstance(plugin, Plugin):
            logger.warning(
                "entry point %s did not produce a Plugin (got %s)", entry.name, type(plugin).__name__
            )
            continue
        plugins.append(plugin)
    return plugins


def list_plugins() -> list[Plugin]:
    """Return registered plugins followed by discovered ones not shadowed by name."""
    plugins = list(_registered.values())
    for plugin in discover_plugins():
        if plugin.name not in _registered:
            plugins.append(plugin)
    return plugins


__all__ = [
    "AuthLoader",
    "CredentialGetter",
    "ENTRY_POINT_GROUP",
    "Plugin",
    "PluginAuth",
    "discover_plugins",
    "list_plugins",
    "register_plugin",
    "unregister_plugin",
]
