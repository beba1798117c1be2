import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import pool
from sqlmodel import SQLModel, create_engine

from alembic import context

# Los modelos viven en src/ (mismo layout que la aplicación)
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

# Import all models so they are registered with SQLModel.metadata
import models  # noqa: E402,F401
from utils.settings import settings  # noqa: E402

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# URL de conexión desde la configuración de la aplicación (.env)
url = settings.database_url

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits the SQL to the script output without a DBAPI connection.
    """
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against the configured database."""

    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
