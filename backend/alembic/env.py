"""Alembic environment for the HateBlock audit store.

Only the ``blocked_content`` table is managed here.  The application itself
talks to PostgreSQL through asyncpg; migrations run synchronously through
psycopg2 (``pip install -e .[migrations]``).
"""

import os
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from config import get_settings
from db.database import Base
from db.models import BlockedContent  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Importing BlockedContent registers the only table autogenerate compares.
target_metadata = Base.metadata


def _audit_db_url() -> str:
    """URL of the audit database, rewritten from asyncpg to psycopg2."""
    url = os.environ.get("DATABASE_URL") or get_settings().database_url
    return url.replace("+asyncpg", "+psycopg2")


def run_migrations_offline() -> None:
    """Write the blocked_content DDL as SQL instead of applying it."""
    context.configure(
        url=_audit_db_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply pending audit-table revisions to the configured database."""
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _audit_db_url()
    audit_engine = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with audit_engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_server_default=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
