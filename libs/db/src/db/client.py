"""Engine and transaction scope for the fiscal database.

One engine per process, bound on first use to ``DATABASE_URL`` (or an
explicit ``database_url``). Asking for a different URL while bound is an
error; tests call :func:`dispose_engine` between databases.

    from db.client import session_scope

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
_SESSIONS: sessionmaker[Session] | None = None
_BOUND_URL: str | None = None


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the process engine, binding it on first call."""

    global _ENGINE, _SESSIONS, _BOUND_URL
    if _ENGINE is not None:
        if database_url is not None and database_url != _BOUND_URL:
            raise RuntimeError(
                "database engine already bound to another URL; call dispose_engine() first"
            )
        return _ENGINE

    url = database_url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set and no database_url was given")
    _ENGINE = create_engine(url, pool_pre_ping=True)
    _SESSIONS = sessionmaker(bind=_ENGINE, expire_on_commit=False)
    _BOUND_URL = url
    return _ENGINE


def dispose_engine() -> None:
    """Close pooled connections and unbind, so the next call may use another URL."""

    global _ENGINE, _SESSIONS, _BOUND_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _SESSIONS = None
    _BOUND_URL = None


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """Yield a session inside one transaction: commit on success, roll back on error."""

    get_engine(database_url=database_url)
    assert _SESSIONS is not None
    with _SESSIONS.begin() as session:
        yield session


__all__ = ["get_engine", "dispose_engine", "session_scope"]
