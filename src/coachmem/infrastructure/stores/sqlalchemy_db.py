"""
Engine and session plumbing for the SQL insight store.

``COACHMEM_DB_URL`` overrides the default sqlite file. File-backed sqlite URLs
get their parent directory created before the engine connects.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from coachmem.core.errors import StoreError

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///data/coachmem.db"


def get_db_url() -> str:
    return os.getenv("COACHMEM_DB_URL") or DEFAULT_DB_URL


def sqlite_file_path(db_url: str) -> Optional[Path]:
    """Database file behind a sqlite URL; None for other backends and in-memory databases."""
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return None
    database = url.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return None
    return Path(database).expanduser()


def ensure_sqlite_parent_dir(db_url: str) -> None:
    path = sqlite_file_path(db_url)
    if path is not None:
        path.resolve().parent.mkdir(parents=True, exist_ok=True)


def create_db_engine(db_url: Optional[str] = None) -> Engine:
    url = db_url or get_db_url()
    ensure_sqlite_parent_dir(url)
    connect_args = {}
    if make_url(url).get_backend_name() == "sqlite":
        # one store instance may be shared across threads
        connect_args = {"check_same_thread": False}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class SessionProvider:
    """
    Owns the engine for one database URL.

    Sessions come from ``session_scope``, which closes them and turns any
    SQLAlchemy failure into a ``StoreError`` tagged with the operation name.
    """

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or get_db_url()
        self.engine = create_db_engine(self.db_url)
        self._factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    def create_schema(self, metadata: MetaData) -> None:
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(message=f"schema creation failed: {exc}", context={"db_url": self.db_url}) from exc

    @contextmanager
    def session_scope(self, operation: str) -> Iterator[Session]:
        session = self._factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.warning("store operation %s failed: %s", operation, exc)
            raise StoreError(message=f"{operation} failed: {exc}", context={"operation": operation}) from exc
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
