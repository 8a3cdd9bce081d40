"""
Alembic migration environment for SQLite.

Database path is resolved from DATABASE_PATH env var,
falling back to cellar/data/cellar.db relative to backend/.
"""

import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

# Add backend to Python path so cellar imports work
sys.path.insert(0, str(Path(__file__).parent.parent))

config = context.config
programmatic = config.attributes.get("programmatic", False)

if config.config_file_name is not None and not programmatic:
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def get_database_url() -> str:
    """Get SQLite URL from config, environment, or default.

    Resolution order:
    1. sqlalchemy.url set by ensure_schema (app startup, test fixtures)
    2. DATABASE_PATH env var (CLI `alembic upgrade head`, startup script)
    3. sqlalchemy.url from alembic.ini
    4. Default: cellar/data/cellar.db
    """
    config_url = config.get_main_option("sqlalchemy.url")
    if programmatic and config_url:
        return config_url

    env_path = os.getenv("DATABASE_PATH")
    if env_path:
        return f"sqlite:///{env_path}"

    if config_url:
        return config_url

    default_path = Path(__file__).parent.parent / "cellar" / "data" / "cellar.db"
    default_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{default_path}"


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = get_database_url()
    context.configure(
        url=url,
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    from sqlalchemy import create_engine

    url = get_database_url()
    connectable = create_engine(url)

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
