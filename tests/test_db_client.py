from __future__ import annotations

from pathlib import Path

import pytest
from db.client import dispose_engine, get_engine, session_scope
from db.models.fiscal import Company

from tests.helpers.db import bootstrap_sqlite_db


def test_session_scope_commits_on_success(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "a.sqlite3")

    with session_scope(database_url=url) as session:
        session.add(Company(cnpj="1", name="A"))

    with session_scope() as session:
        assert [c.name for c in session.query(Company)] == ["A"]


def test_session_scope_rolls_back_on_error(tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "a.sqlite3")

    with pytest.raises(RuntimeError, match="boom"):
        with session_scope(database_url=url) as session:
            session.add(Company(cnpj="1", name="A"))
            session.flush()
            raise RuntimeError("boom")

    with session_scope(database_url=url) as session:
        assert session.query(Company).count() == 0


def test_engine_is_bound_to_one_url_until_disposed(tmp_path: Path):
    first = bootstrap_sqlite_db(tmp_path / "a.sqlite3")
    second = f"sqlite+pysqlite:///{tmp_path / 'b.sqlite3'}"

    assert get_engine(database_url=first) is get_engine()
    with pytest.raises(RuntimeError, match="already bound"):
        get_engine(database_url=second)

    dispose_engine()
    assert str(get_engine(database_url=second).url).endswith("b.sqlite3")


def test_unbound_engine_needs_a_url():
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        get_engine()


def test_database_url_env_is_used(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'env.sqlite3'}"
    monkeypatch.setenv("DATABASE_URL", url)

    assert str(get_engine().url) == url
