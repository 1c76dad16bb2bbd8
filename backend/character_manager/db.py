from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from character_manager.config import get_settings

engine = create_engine(
    get_settings().db_url,
    echo=False,
    connect_args={"check_same_thread": False},
)


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


# Only this plugin's engine; the host's engines keep their own settings
if engine.dialect.name == "sqlite":
    event.listen(engine, "connect", _set_sqlite_pragmas)


def create_db_and_tables() -> None:
    import character_manager.models  # noqa: F401  register SQLModel tables

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
