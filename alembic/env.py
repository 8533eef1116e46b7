"""
Alembic Environment Configuration
==================================

Runs migrations against the Feedboard relational store.
At application startup feedboard.core.database passes an open connection
through ``config.attributes["connection"]``; from the CLI the URL comes from
FEEDBOARD_DATABASE_URL / DATABASE_URL, falling back to alembic.ini.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlmodel import SQLModel

from feedboard.config import settings
from feedboard.models import Feedback, User  # noqa: F401

config = context.config

connection = config.attributes.get("connection")

if connection is None:
    config.set_main_option("sqlalchemy.url", settings.resolve_database_url().replace("%", "%%"))
    # Only the CLI configures logging from the ini; the app owns its handlers
    if config.config_file_name is not None:
        fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL to stdout)."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode (connect to DB)."""
    if connection is not None:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()
        return

    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as conn:
        context.configure(connection=conn, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
