"""Derive property descriptors from SQLAlchemy Core tables.

Columns map to persistent properties; the column's SQL type decides the
declared :class:`SemanticType` and ``nullable`` is copied as-is.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from sqlalchemy import types as sqltypes

from writeguard.domain.descriptors import PropertyDescriptor, TypeBuilder
from writeguard.domain.types import SemanticType

if TYPE_CHECKING:
    from sqlalchemy import Column, Table

# Checked in order; first isinstance match wins.
_TYPE_MAP: tuple[tuple[type[sqltypes.TypeEngine], SemanticType], ...] = (
    (sqltypes.Boolean, SemanticType.BOOLEAN),
    (sqltypes.Integer, SemanticType.INTEGER),
    (sqltypes.Numeric, SemanticType.FLOAT),
    (sqltypes.DateTime, SemanticType.DATETIME),
    (sqltypes.Date, SemanticType.DATE),
    (sqltypes.JSON, SemanticType.JSON),
    (sqltypes.String, SemanticType.STRING),
)


def semantic_type_of(column: Column) -> SemanticType:
    for sql_type, semantic in _TYPE_MAP:
        if isinstance(column.type, sql_type):
            return semantic
    return SemanticType.ANY


def describe_table(table: Table) -> tuple[PropertyDescriptor, ...]:
    """One persistent :class:`PropertyDescriptor` per column, in column order."""
    return tuple(
        PropertyDescriptor(
            name=col.name,
            declared_type=semantic_type_of(col),
            nullable=bool(col.nullable),
        )
        for col in table.columns
    )


def builder_for_table(
    table: Table,
    *,
    name: str | None = None,
    transient: Mapping[str, SemanticType | str] | None = None,
) -> TypeBuilder:
    """Start a :class:`TypeBuilder` whose properties mirror *table*.

    *transient* adds non-persistent properties (accepted in write values,
    never written, and never validated).
    """
    builder = TypeBuilder(
        name or table.name,
        describe_table(table),
        table_name=table.name,
        key=[col.name for col in table.primary_key.columns],
    )
    for prop_name, declared in (transient or {}).items():
        builder.property(prop_name, declared, persistent=False)
    return builder
