"""BaseService: abstract foundation for writeguard services.

Every service receives a :class:`Store` at construction time. The Store
provides the sealed type registry and transactional database access;
services own their transaction boundaries via ``self._store.transaction()``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from writeguard.infrastructure.store import Store


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class WriteService(BaseService):
            def insert(self, type_name: str, values: dict) -> ServiceResult:
                with self._store.transaction() as conn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event to plugins. No-op without a plugin manager.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        pm = self._store.plugin_manager
        if pm is None:
            return
        warning = pm.notify(hook_name, **payload)
        if warning:
            warnings.append(warning)
