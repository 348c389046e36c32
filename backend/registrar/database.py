"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine and provides small
helpers used by the application, scripts and tests. By default the
database is a SQLite file at the backend root (`registrar.db`); set
`DATABASE_URL` to point at any other SQLAlchemy URL.
"""

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session
from .config import settings


def make_engine(url: str, **kwargs):
    """Create an engine for `url`, enabling SQLite foreign keys when relevant."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, echo=False, **kwargs)
    if eng.dialect.name == "sqlite":
        event.listen(eng, "connect", _enable_sqlite_foreign_keys)
    return eng


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = make_engine(settings.DATABASE_URL)


def create_db_and_tables(bind=None):
    """Create database tables using SQLModel metadata.

    This function is intended for local development and lightweight
    scripts; production deployments should rely on a proper migration
    tool (alembic) instead.
    """
    # models must be imported so their tables are registered on the metadata
    from . import models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes.
    """
    with Session(engine) as session:
        yield session
