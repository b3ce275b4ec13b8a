"""
alembic/env.py

Migration environment for the lab data schema. PostgreSQL only: the
sampling event upsert depends on NULLS NOT DISTINCT and ON CONFLICT.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

import db.models  # noqa: F401  registers every table on Base.metadata
from db.base import Base
from db.config import DatabaseConfigError, normalize_postgres_url, resolve_database_url

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def migration_url() -> str:
    """
    `-x db_url=...`, then ALEMBIC_DATABASE_URL, then sqlalchemy.url from
    alembic.ini, then the application's own database URL chain.
    """

    overrides = (
        context.get_x_argument(as_dictionary=True).get("db_url"),
        os.getenv("ALEMBIC_DATABASE_URL"),
        config.get_main_option("sqlalchemy.url"),
    )
    for candidate in overrides:
        if candidate and candidate.strip():
            url = normalize_postgres_url(candidate)
            break
    else:
        url = resolve_database_url()

    if not url.startswith("postgresql"):
        raise DatabaseConfigError(f"Migrations target PostgreSQL only, got '{url.split(':', 1)[0]}'.")
    return url


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _configure(url=migration_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
else:
    engine = create_engine(migration_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        _configure(connection=connection)
