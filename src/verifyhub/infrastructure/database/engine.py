"""Database engine setup for SQLite with WAL mode.

The DB lives at ``{data_dir}/.verifyhub/{db_filename}``. SQLAlchemy Core
(not ORM) is used: the CLI is short-lived and repositories map rows to
pydantic domain models themselves.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from verifyhub.infrastructure.database.schema import metadata

DATA_DIRNAME = ".verifyhub"
DEFAULT_DB_FILENAME = "verifyhub.db"


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled."""
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(data_dir: Path, db_filename: str = DEFAULT_DB_FILENAME) -> Engine:
    """Create the data directory and all tables, returning the engine.

    Idempotent: safe to call on an existing database.
    """
    store_dir = data_dir / DATA_DIRNAME
    store_dir.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(store_dir / db_filename)
    metadata.create_all(engine)
    return engine
