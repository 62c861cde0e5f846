"""Pluggy hook specifications for writeguard setup and write lifecycle events.

One setup-time hook lets plugins define tables and register types while
the registry is still open. Two lifecycle events report the outcome of
validated and unchecked writes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from sqlalchemy import MetaData

    from writeguard.domain.registry import TypeRegistry

hookspec = pluggy.HookspecMarker("writeguard")


class WriteguardHookSpec:
    """Hook specifications for the writeguard plugin system."""

    @hookspec
    def register_types(self, registry: TypeRegistry, metadata: MetaData) -> None:
        """Define tables on *metadata* and register type descriptors on *registry*.

        Raising :class:`~writeguard.domain.errors.ConfigurationError` aborts
        initialization.
        """

    @hookspec
    def post_write(
        self,
        type_name: str,
        operation: str,
        values: dict[str, Any],
        validated: bool,
    ) -> None:
        """Called after a write committed."""

    @hookspec
    def post_reject(
        self,
        type_name: str,
        operation: str,
        errors: list[str],
    ) -> None:
        """Called after validation rejected a write."""
