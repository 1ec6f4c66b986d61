# ruff: noqa: I001
"""
Alembic configuration for the `db` library.

The database URL is read from `DATABASE_URL` (environment or a workspace
`.env`), falling back to `sqlalchemy.url` in alembic.ini. Target metadata is
the fiscal schema exported by `db.metadata`.
"""

from __future__ import annotations

import os
from pathlib import Path
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from dotenv import load_dotenv, find_dotenv

import db as _db_pkg


def _load_dotenv_candidates() -> None:  # pragma: no cover - side-effectful
    """Load ``.env`` from the current directory and from the repository root.

    Existing environment variables are never overridden.
    """

    candidates = [
        Path.cwd() / ".env",
        # repo root: libs/db/alembic/env.py → ../../..
        Path(__file__).resolve().parents[3] / ".env",
    ]
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        candidates.append(Path(dotenv_path))

    for p in candidates:
        if p.is_file():
            load_dotenv(dotenv_path=p, override=False)


# Load env before reading DATABASE_URL
_load_dotenv_candidates()

# Alembic Config object, which provides access to the values within
# the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Normalize and validate database URL from environment or INI (env wins).
db_url_maybe = os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")
if db_url_maybe is None or db_url_maybe == "":
    raise RuntimeError(
        "DATABASE_URL is not set. Provide it via environment or set "
        "'sqlalchemy.url' in alembic.ini."
    )
db_url: str = db_url_maybe

config.set_main_option("sqlalchemy.url", db_url)
config.set_section_option(config.config_ini_section, "sqlalchemy.url", db_url)

target_metadata = _db_pkg.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = db_url
    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
