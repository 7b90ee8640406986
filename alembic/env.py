# alembic/env.py
"""
Alembic environment.
Reads the same DatabaseConfig as the application; migrations run on the
synchronous driver (psycopg2 for PostgreSQL, sqlite3 for SQLite).
"""

import sys
from logging.config import fileConfig
from typing import Any

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from app.db.models import DbBaseModel
from common.api_error import ConfigurationError
from common.config import get_config, initialize_config

load_dotenv()
try:
    initialize_config()
except ConfigurationError as e:
    print(f"FATAL: Configuration error:\n{e}")
    sys.exit(1)

config = context.config
app_config = get_config()

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = DbBaseModel.metadata


def get_sync_url() -> str:
    if not app_config.database:
        raise RuntimeError("Database configuration not found in environment")
    return app_config.database.get_sync_url()


def get_connect_args() -> dict[str, Any]:
    """SSL settings in psycopg2's parameter names."""
    db_config = app_config.database
    if not db_config or db_config.is_sqlite or not db_config.ssl_mode:
        return {}

    connect_args: dict[str, Any] = {"sslmode": db_config.ssl_mode.value}
    if db_config.ssl_ca_path:
        connect_args["sslrootcert"] = str(db_config.ssl_ca_path)
    if db_config.ssl_cert_path:
        connect_args["sslcert"] = str(db_config.ssl_cert_path)
    if db_config.ssl_key_path:
        connect_args["sslkey"] = str(db_config.ssl_key_path)
    return connect_args


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    context.configure(
        url=get_sync_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=app_config.database.is_sqlite,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_sync_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=get_connect_args(),
    )

    with connectable.connect() as connection:
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
