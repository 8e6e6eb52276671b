"""Engine and session helpers for the ledger database.

One process talks to one database: the first call binds a shared engine to
either the explicit ``database_url`` or ``DATABASE_URL``, and later calls reuse
it. Tests that need a fresh database call :func:`dispose_engine` in between.

Usage
-----
from db.client import create_schema, session_scope

create_schema(database_url="sqlite+pysqlite:///ledger.db")
with session_scope() as s:
    s.execute(...)
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
_BOUND_URL: str | None = None


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("no database URL: pass database_url or set DATABASE_URL")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the shared engine, binding it on first use.

    Asking for a different URL once bound raises ``RuntimeError`` rather than
    silently reusing the wrong database.
    """

    global _ENGINE, _SESSION_MAKER, _BOUND_URL
    url = resolve_database_url(database_url)
    if _ENGINE is not None:
        if url != _BOUND_URL:
            raise RuntimeError(
                f"engine already bound to {_BOUND_URL!r}; call dispose_engine() before "
                f"switching to {url!r}"
            )
        return _ENGINE

    _ENGINE = create_engine(url, pool_pre_ping=True)
    _SESSION_MAKER = sessionmaker(bind=_ENGINE, expire_on_commit=False, class_=Session)
    _BOUND_URL = url
    return _ENGINE


def dispose_engine() -> None:
    """Close pooled connections and unbind, so the next call may use another URL."""

    global _ENGINE, _SESSION_MAKER, _BOUND_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = _SESSION_MAKER = _BOUND_URL = None


def get_session(*, database_url: str | None = None) -> Session:
    get_engine(database_url=database_url)
    assert _SESSION_MAKER is not None  # bound by get_engine
    return _SESSION_MAKER()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on any error, always close."""

    session = get_session(database_url=database_url)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(*, database_url: str | None = None) -> None:
    """Create the ledger tables that do not exist yet."""

    from .models.ledger import Base

    Base.metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "create_schema",
    "dispose_engine",
    "get_engine",
    "get_session",
    "resolve_database_url",
    "session_scope",
]
