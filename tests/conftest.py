"""Pytest configuration for test isolation.

The shared database engine in ``db.client`` is a process-wide singleton and
each database test binds its own SQLite file, so the engine is disposed after
every test and any ambient ``DATABASE_URL`` is hidden.
"""

from __future__ import annotations

import pytest
from db.client import dispose_engine


@pytest.fixture(autouse=True)
def _isolate_db_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    yield
    dispose_engine()
