"""Initialization phase: from settings to a ready Store.

Loads plugins, lets them define tables and register types, then hands
everything to :class:`Store`, which seals the registry. After
:func:`open_store` returns, no type can be added.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import MetaData

from writeguard.domain.registry import TypeRegistry
from writeguard.infrastructure.store import Store
from writeguard.plugins.manager import PluginManager

if TYPE_CHECKING:
    from writeguard.config.settings import WriteguardSettings


def open_store(settings: WriteguardSettings, *, plugins: Iterable[object] = ()) -> Store:
    """Discover plugins, collect their types, and open the Store.

    *plugins* are registered before discovery (useful for embedding and tests).

    Raises:
        ConfigurationError: If any type registration is invalid.
    """
    pm = PluginManager()
    for plugin in plugins:
        pm.register_plugin(plugin)
    pm.discover_and_load(
        local_dir=settings.local_plugin_dir,
        entry_points=settings.plugins.entry_points,
    )

    registry = TypeRegistry()
    metadata = MetaData()
    pm.register_types(registry, metadata)
    return Store.from_settings(settings, registry, metadata, plugin_manager=pm)
