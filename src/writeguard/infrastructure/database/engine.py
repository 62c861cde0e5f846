"""Database engine setup.

SQLAlchemy Core (not ORM): the write path builds plain INSERT/UPDATE
statements from validated assignments, so there is no need for sessions or
identity maps. SQLite databases get foreign keys enabled, and WAL mode when
backed by a file.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    """Create an engine for *url* with SQLite pragmas applied on connect."""
    parsed = make_url(url)
    engine = create_engine(parsed, echo=echo)

    if parsed.get_backend_name() == "sqlite":
        file_backed = parsed.database not in (None, "", ":memory:")

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            if file_backed:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine
