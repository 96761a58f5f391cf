"""Alembic environment: DATABASE_URL comes from app settings, tables from Base.metadata."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection
from sqlalchemy.pool import NullPool

os.environ.setdefault("APP_ENV", "dev")
from app.core.config import get_settings
from app.core.database import build_engine
from app.models import Base

# Importing app.models registers users and sessions on Base.metadata.
from app.models import User, UserSession  # noqa: F401

config = context.config
# alembic.ini may omit [formatters]/[handlers]/[loggers]; fileConfig raises KeyError then.
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass

target_metadata = Base.metadata
settings = get_settings()


def run_migrations_offline() -> None:
    """Generate SQL without connecting."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run(connection: Connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect and migrate. Postgres gets a throwaway NullPool engine."""
    if settings.DATABASE_URL.startswith("sqlite"):
        connectable = build_engine(settings)
    else:
        connectable = create_engine(settings.DATABASE_URL, poolclass=NullPool)
    with connectable.connect() as connection:
        _run(connection)
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
