"""Plugin discovery, type setup and lifecycle event dispatch.

Plugins are collected from two sources, in this order:

1. the ``writeguard.plugins`` entry-point group (pip-installed packages);
2. single-file modules in the project's local plugin directory
   (``.writeguard/plugins/`` by default).

Type setup is strict: an exception from ``register_types`` aborts
initialization. Lifecycle events are best-effort: a failing plugin turns
into a warning on the ServiceResult and the write stands.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from typing import TYPE_CHECKING, Any

import pluggy

from writeguard.plugins.hookspecs import WriteguardHookSpec

if TYPE_CHECKING:
    from pathlib import Path
    from types import ModuleType

    from sqlalchemy import MetaData

    from writeguard.domain.registry import TypeRegistry

PROJECT_NAME = "writeguard"
ENTRY_POINT_GROUP = "writeguard.plugins"
LOCAL_MODULE_PREFIX = "writeguard_local_plugin_"

logger = logging.getLogger(__name__)


def _load_local_module(py_file: Path) -> ModuleType | None:
    """Import *py_file* under a private module name; None if it fails."""
    module_name = LOCAL_MODULE_PREFIX + py_file.stem
    spec = importlib.util.spec_from_file_location(module_name, py_file)
    if spec is None or spec.loader is None:
        logger.warning("Could not create module spec for %s", py_file)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Failed to load local plugin %s", py_file, exc_info=True)
        return None
    return module


class PluginManager:
    """Thin wrapper over :class:`pluggy.PluginManager` for writeguard hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(WriteguardHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def discover_and_load(
        self,
        *,
        local_dir: Path | None = None,
        entry_points: bool = True,
    ) -> list[str]:
        """Load entry-point plugins, then local ones; return all plugin names."""
        if entry_points:
            count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
            logger.debug("Loaded %d plugin(s) from %s", count, ENTRY_POINT_GROUP)
            self._normalize_plugin_instances()
        if local_dir is not None:
            self._discover_local(local_dir)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Hook dispatch
    # ------------------------------------------------------------------

    def register_types(self, registry: TypeRegistry, metadata: MetaData) -> None:
        """Let every plugin define tables and register types.

        Exceptions propagate so that a half-registered type never becomes
        usable.
        """
        self._pm.hook.register_types(registry=registry, metadata=metadata)

    def notify(self, event: str, **payload: Any) -> str | None:
        """Fire lifecycle *event*. Returns a warning message if a plugin raised."""
        try:
            getattr(self._pm.hook, event)(**payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", event, exc_info=True)
            return f"Event dispatch failed for {event}"
        return None

    # ------------------------------------------------------------------
    # Discovery internals
    # ------------------------------------------------------------------

    def _discover_local(self, local_dir: Path) -> None:
        """Register hook-bearing classes from ``*.py`` files in *local_dir*.

        ``_``-prefixed files are skipped. A file that fails to import or a
        class that fails to instantiate is logged and skipped; the others
        still load.
        """
        if not local_dir.is_dir():
            return
        for py_file in sorted(local_dir.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            module = _load_local_module(py_file)
            if module is None:
                continue
            for _, cls in inspect.getmembers(module, inspect.isclass):
                if cls.__module__ == module.__name__ and self._has_hook_impls(cls):
                    self._instantiate(cls, f"{module.__name__}.{cls.__name__}", source=py_file)

    def _normalize_plugin_instances(self) -> None:
        """Swap plugin classes registered by entry points for instances.

        Hooks called on a class object would run with ``self`` unbound.
        """
        for plugin in self.get_plugins():
            if inspect.isclass(plugin) and self._has_hook_impls(plugin):
                name = self._pm.get_name(plugin) or plugin.__name__
                self._pm.unregister(plugin)
                self._instantiate(plugin, name, source=ENTRY_POINT_GROUP)

    def _instantiate(self, cls: type, name: str, *, source: object) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Failed to instantiate plugin %s from %s", name, source, exc_info=True)
            return
        self.register_plugin(instance, name=name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """True if any public method of *cls* carries ``@hookimpl``."""
        marker = f"{PROJECT_NAME}_impl"
        return any(
            getattr(getattr(cls, name, None), marker, None) is not None
            for name in dir(cls)
            if not name.startswith("_")
        )
