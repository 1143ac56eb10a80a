"""Migrations for the voice_files metadata table.

The database URL comes from ``BACKEND_URL`` (see voice_changer.config), never
from alembic.ini, so migrations and the app always target the same database.
"""

from logging.config import fileConfig

from alembic import context
from voice_changer.config import get_settings
from voice_changer.database import Base, build_engine
from voice_changer.models.voice_file import VoiceFile  # noqa: F401  registers voice_files

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

database_url = get_settings().BACKEND_URL
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the voice_files DDL as SQL without connecting."""
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = build_engine(database_url)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, target_metadata=target_metadata)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
