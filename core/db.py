"""SQLAlchemy plumbing for the embedded wiki database.

Every repository call acquires its own session through :func:`session_scope`
and releases it on every exit path.  The engine is shared, sessions are not.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import BigInteger, Engine, Integer, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from domain.wiki.exceptions import WikiStoreError

logger = logging.getLogger(__name__)

# Define BIGINT type compatible with SQLite auto increment
BigInt = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    """Declarative base shared by all wiki tables."""


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # pragma: no cover - driver hook
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(database_uri: str, *, echo: bool = False) -> Engine:
    """Create the engine backing the wiki store."""

    url = make_url(database_uri)
    options: dict[str, object] = {"echo": echo}
    if url.get_backend_name() == "sqlite":
        # Flask serves requests from worker threads; each call opens its own
        # connection so cross-thread use of the pool is safe.
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # インメモリDBは接続ごとに別物になるため 1 接続を共有する
            options["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    else:
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 1800

    engine = create_engine(url, **options)
    if url.get_backend_name() == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def init_store(engine: Engine) -> None:
    """Create all tables that do not exist yet."""

    # Register mapped classes on Base.metadata before create_all.
    from core import models as _models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.error(
            "Failed to initialise wiki store",
            exc_info=True,
            extra={"event": "wiki.store.init_failed"},
        )
        raise WikiStoreError("Failed to initialise the wiki store") from exc


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Provide a transactional scope around a single store operation.

    Commits when the block succeeds, rolls back otherwise and always closes
    the session.  Database errors are re-raised as :class:`WikiStoreError`.
    """

    session = session_factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise WikiStoreError(f"Store operation failed ({exc.__class__.__name__})") from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "BigInt",
    "create_session_factory",
    "create_store_engine",
    "init_store",
    "session_scope",
]
