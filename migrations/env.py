"""
Alembic environment configuration.

Runs whenever Alembic performs a migration. The database URL
comes from DATABASE_URL unless the caller already set
sqlalchemy.url, and the ledger tables are known through
Base.metadata.

The gateway still calls create_schema() on startup, which is
enough for a fresh SQLite file; revisions under versions/ carry
an existing database forward.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

import expense_ledger.models  # noqa: F401  registers every table on Base.metadata
from expense_ledger.config import get_settings
from expense_ledger.models.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata

if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_settings().DATABASE_URL)


def run_migrations_offline() -> None:
    """Emit the migration as SQL without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migration against the configured database."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        # SQLite cannot ALTER most columns in place
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
