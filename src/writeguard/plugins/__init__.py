"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from a local directory.
INVARIANT: Lifecycle event failures are warnings, never errors.
"""

import pluggy

from writeguard.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("writeguard")

__all__ = ["PluginManager", "hookimpl"]
