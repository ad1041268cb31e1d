"""Database engine setup.

For test runs (ENV=test) we use a shared in-memory SQLite database unless a
DATABASE_URL pointing elsewhere is given. SQLite connections get foreign key
enforcement switched on so the store behaves like PostgreSQL for references.
"""

import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from wms.core.config import settings

raw_url = settings.DATABASE_URL or "sqlite:///./storage/dev.db"


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        if url.startswith("sqlite:///") and ":memory:" not in url:
            directory = os.path.dirname(url.removeprefix("sqlite:///"))
            if directory:
                os.makedirs(directory, exist_ok=True)
        # Route functions run in a thread pool, so connections cross threads
        return create_engine(
            url,
            future=True,
            echo=settings.DATABASE_ECHO,
            connect_args={"check_same_thread": False},
        )
    # Pool recycle: recycle connections after 1 hour to prevent stale connections
    # Pool pre-ping: verify connection health before using
    return create_engine(
        url,
        future=True,
        echo=settings.DATABASE_ECHO,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # noqa: ARG001
    if dbapi_connection.__class__.__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = _build_engine(raw_url)
SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def create_db_and_tables() -> None:
    from wms.db.base_class import Base
    from wms.models import inventory_models  # noqa: F401 - registers tables

    Base.metadata.create_all(bind=SessionLocal.kw["bind"])


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
