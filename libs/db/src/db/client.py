"""SQLAlchemy engine and session access for the consent store.

The engine is created on first use from ``DATABASE_URL`` (or an explicit
``database_url``) and reused for the life of the process. Callers normally
want :func:`session_scope`, which commits on success and rolls back on error.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

_ENGINE: Engine | None = None
_SESSION_MAKER: sessionmaker[Session] | None = None
_DB_URL: str | None = None


def _database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; cannot open the consent store")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Shared engine; binding a second, different URL is an error."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    url = _database_url(database_url)
    if _ENGINE is None:
        engine = create_engine(url, pool_pre_ping=True)
        _SESSION_MAKER = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)
        _ENGINE = engine
        _DB_URL = url
        return engine
    if _DB_URL is not None and url != _DB_URL:
        raise RuntimeError(
            "get_engine() already initialized with a different DATABASE_URL; "
            "call reset_engine() before switching databases"
        )
    return _ENGINE


def reset_engine() -> None:
    """Dispose the shared engine so the next call may bind a different URL."""

    global _ENGINE, _SESSION_MAKER, _DB_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSION_MAKER = None
    _DB_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    """Fresh session on the shared engine; the caller closes it."""

    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session that commits when the block exits cleanly."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "get_engine",
    "get_session",
    "reset_engine",
    "session_scope",
]
