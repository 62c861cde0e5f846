"""Shared pytest fixtures and test helpers for writeguard tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table

from writeguard.domain import (
    AssignmentSet,
    OperationKind,
    TypeBuilder,
    TypeDescriptor,
    TypeRegistry,
    absent,
    length,
    one_of,
    pattern,
    present,
    value_range,
)
from writeguard.infrastructure.database import builder_for_table, create_db_engine
from writeguard.infrastructure.store import Store
from writeguard.services.write import WriteService

ORDER_STATES = ("started", "accepted", "rejected", "delivered")
EMAIL_PATTERN = r"[^@\s]+@[^@\s]+\.[a-z]+"


# ---------------------------------------------------------------------------
# Sample "orders" type
# ---------------------------------------------------------------------------


def define_orders_table(metadata: MetaData) -> Table:
    return Table(
        "orders",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("state", String(20), nullable=False),
        Column("email", String(120)),
        Column("quantity", Integer),
        Column("code", String(10)),
        Column("canOnlyBeSetOnce", String(40)),
        Column("createdAt", DateTime),
    )


def stamp_created_at(operation: OperationKind, assignments: AssignmentSet) -> None:
    if operation is OperationKind.INSERT:
        assignments.set("createdAt", datetime.now(UTC))


def delivered_needs_quantity(
    operation: OperationKind,
    assignments: AssignmentSet,
    field_valid: bool,
    errors: list[str],
) -> bool:
    state = assignments.get("state")
    if state.has_value and state.value == "delivered" and not assignments.get("quantity").has_value:
        errors.append("A `delivered` order must state its `quantity`.")
        return False
    return field_valid


def orders_builder(table: Table) -> TypeBuilder:
    return (
        builder_for_table(table, transient={"note": "string"})
        .rule("state", one_of(ORDER_STATES))
        .rule("email", present(on_update=False), length(max=120), pattern(EMAIL_PATTERN))
        .rule("quantity", value_range(min=1, max=100))
        .rule("code", length(max=10), pattern(r"[A-Z0-9-]+"))
        .rule("canOnlyBeSetOnce", absent(on_insert=False))
        .rule("createdAt", present(on_update=False))
        .rule("note", length(max=5))
        .pre_write(stamp_created_at)
        .post_validation(delivered_needs_quantity)
    )


@pytest.fixture
def metadata() -> MetaData:
    return MetaData()


@pytest.fixture
def orders_table(metadata: MetaData) -> Table:
    return define_orders_table(metadata)


@pytest.fixture
def orders_type(orders_table: Table) -> TypeDescriptor:
    """The sample ``orders`` type, built but not registered anywhere."""
    return orders_builder(orders_table).build()


@pytest.fixture
def store(tmp_path: Path, metadata: MetaData, orders_type: TypeDescriptor) -> Generator[Store]:
    """Store over a temp SQLite file with the ``orders`` table created."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    registry = TypeRegistry()
    registry.register(orders_type)
    s = Store(engine, registry, metadata)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def write_service(store: Store) -> WriteService:
    return WriteService(store)


def insert_order(service: WriteService, **values: Any) -> dict[str, Any]:
    """Insert a valid order via WriteService, asserting success."""
    payload = {"state": "started", "email": "buyer@example.com", **values}
    result = service.insert("orders", payload)
    assert result.ok, result.error
    return result.data


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

ORDERS_PLUGIN_SRC = """\
import pluggy
from sqlalchemy import Column, Integer, String, Table

from writeguard.domain import absent, one_of, present
from writeguard.infrastructure.database import builder_for_table

hookimpl = pluggy.HookimplMarker("writeguard")


class OrdersPlugin:
    @hookimpl
    def register_types(self, registry, metadata):
        table = Table(
            "orders",
            metadata,
            Column("id", Integer, primary_key=True),
            Column("state", String(20), nullable=False),
            Column("email", String(120)),
            Column("canOnlyBeSetOnce", String(40)),
        )
        registry.register(
            builder_for_table(table)
            .rule("state", one_of(["started", "accepted", "rejected", "delivered"]))
            .rule("email", present(on_update=False))
            .rule("canOnlyBeSetOnce", absent(on_insert=False))
        )
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Temporary project with a ``writeguard.toml`` and one local plugin.

    Entry-point discovery is disabled so installed plugins cannot leak in.
    """
    (tmp_path / "writeguard.toml").write_text(
        '[database]\nurl = "sqlite:///orders.db"\n\n[plugins]\nentry_points = false\n',
        encoding="utf-8",
    )
    plugin_dir = tmp_path / ".writeguard" / "plugins"
    plugin_dir.mkdir(parents=True)
    (plugin_dir / "orders.py").write_text(ORDERS_PLUGIN_SRC, encoding="utf-8")
    return tmp_path


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project so the CLI opens an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command test
    classes.
    """
    monkeypatch.delenv("WRITEGUARD_CONFIG", raising=False)
    monkeypatch.chdir(project_root)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    wg_level = logging.getLogger("writeguard").level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("writeguard").setLevel(wg_level)
