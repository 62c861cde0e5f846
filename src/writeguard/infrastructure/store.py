"""Store: the persistence side of the write path.

The Store is the single dependency injected into every service. It owns the
database engine, the sealed :class:`TypeRegistry`, and the SQLAlchemy
``MetaData`` holding one table per registered type.

Construction is the end of the initialization phase: the registry is
sealed, missing tables are reflected from the database, and every
persistent property is checked against the table's columns. Any mismatch is
a :class:`ConfigurationError` raised before the first write.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sqlalchemy import MetaData
from sqlalchemy.exc import InvalidRequestError, NoSuchTableError

from writeguard.domain.errors import ConfigurationError
from writeguard.infrastructure.database.engine import create_db_engine

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection, Table
    from sqlalchemy.engine import Engine

    from writeguard.config.settings import WriteguardSettings
    from writeguard.domain.descriptors import TypeDescriptor
    from writeguard.domain.registry import TypeRegistry
    from writeguard.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Store:
    """Engine + registry + tables, with a transaction boundary."""

    def __init__(
        self,
        engine: Engine,
        registry: TypeRegistry,
        metadata: MetaData | None = None,
        *,
        create_tables: bool = True,
        plugin_manager: PluginManager | None = None,
    ) -> None:
        self._engine = engine
        self._registry = registry
        self._metadata = metadata if metadata is not None else MetaData()
        self.plugin_manager = plugin_manager

        registry.seal()
        try:
            if create_tables:
                self._metadata.create_all(engine)
            self._reflect_missing()
            self._check_columns()
        except Exception:
            engine.dispose()
            raise

    @classmethod
    def from_settings(
        cls,
        settings: WriteguardSettings,
        registry: TypeRegistry,
        metadata: MetaData | None = None,
        *,
        plugin_manager: PluginManager | None = None,
    ) -> Store:
        engine = create_db_engine(settings.database_url, echo=settings.database.echo)
        return cls(
            engine,
            registry,
            metadata,
            create_tables=settings.database.create_tables,
            plugin_manager=plugin_manager,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def registry(self) -> TypeRegistry:
        return self._registry

    @property
    def metadata(self) -> MetaData:
        return self._metadata

    def table_for(self, descriptor: TypeDescriptor) -> Table:
        return self._metadata.tables[descriptor.table_name]

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Yield a connection inside ``engine.begin()``.

        The transaction commits when the block exits normally and rolls
        back on any exception, so a failed write persists nothing.
        """
        with self._engine.begin() as conn:
            yield conn

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Initialization checks
    # ------------------------------------------------------------------

    def _reflect_missing(self) -> None:
        missing = sorted(
            {d.table_name for d in self._registry} - set(self._metadata.tables)
        )
        if not missing:
            return
        try:
            self._metadata.reflect(self._engine, only=missing)
        except (InvalidRequestError, NoSuchTableError) as exc:
            msg = f"Tables missing for registered types: {', '.join(missing)}"
            raise ConfigurationError(msg) from exc
        logger.debug("Reflected tables: %s", ", ".join(missing))

    def _check_columns(self) -> None:
        for descriptor in self._registry:
            columns = set(self.table_for(descriptor).columns.keys())
            unknown = [n for n in descriptor.persistent_names if n not in columns]
            if unknown:
                msg = (
                    f"Type {descriptor.name!r} declares persistent properties with no "
                    f"column in {descriptor.table_name!r}: {', '.join(unknown)}"
                )
                raise ConfigurationError(msg)
