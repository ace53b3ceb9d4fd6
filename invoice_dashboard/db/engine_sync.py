# invoice_dashboard/db/engine_sync.py
"""
Synchronous SQLModel engine and session management.
SQLite (default) runs with WAL mode and foreign keys enabled so that deleting
a client cascades to its payments and email logs.
"""
import os
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..core.config import get_settings


def build_engine(database_url: str, **kwargs) -> Engine:
    """
    Create a sync engine for the given URL, applying SQLite pragmas when needed.
    """
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        # File databases need their directory to exist
        db_path = database_url.split(":///", 1)[-1]
        if db_path and db_path != database_url and not db_path.startswith(":memory:"):
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    engine = create_engine(database_url, echo=False, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            if ":memory:" not in database_url and database_url.rstrip("/") != "sqlite:":
                cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()

    return engine


sync_engine = build_engine(get_settings().database_url)


def get_sync_session() -> Generator[Session, None, None]:
    """
    Dependency for SYNC SQLModel session injection.
    Usage: session: Session = Depends(get_sync_session)
    """
    with Session(sync_engine) as session:
        yield session


def create_sync_db_and_tables(engine: Engine | None = None):
    """
    Create all tables defined in SQLModel models.
    """
    # Models must be imported so their tables are registered in the metadata
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine or sync_engine)
