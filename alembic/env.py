from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from padel_ladder.config import DATABASE_URL
from padel_ladder.database import Base, sync_database_url  # ✅ Import your SQLAlchemy models
from padel_ladder import models  # noqa: F401

# Load Alembic Config
config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata


def run_migrations_offline():
    context.configure(
        url=config.get_main_option("sqlalchemy.url") or sync_database_url(DATABASE_URL),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations using a synchronous database engine."""
    # ✅ Use a **SYNC** engine for Alembic migrations
    connectable = create_engine(
        config.get_main_option("sqlalchemy.url") or sync_database_url(DATABASE_URL),
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
