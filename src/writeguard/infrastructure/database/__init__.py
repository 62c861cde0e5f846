"""Database engine factory and table introspection via SQLAlchemy Core."""

from writeguard.infrastructure.database.engine import create_db_engine
from writeguard.infrastructure.database.introspect import (
    builder_for_table,
    describe_table,
    semantic_type_of,
)

__all__ = [
    "builder_for_table",
    "create_db_engine",
    "describe_table",
    "semantic_type_of",
]
