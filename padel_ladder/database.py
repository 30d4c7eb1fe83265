from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base

from padel_ladder.config import DATABASE_URL, DATABASE_ECHO

# Sync drivers for tools that cannot use the async engine (alembic)
SYNC_DRIVERS = {"+aiosqlite": "", "+asyncpg": "+psycopg2"}


def sync_database_url(url):
    for async_driver, sync_driver in SYNC_DRIVERS.items():
        url = url.replace(async_driver, sync_driver)
    return url


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def use_unicode_lower(async_engine):
    """Make SQLite's lower() fold non-ASCII letters like Postgres does.

    The built-in only folds A-Z, which would let "Ángel" and "ángel" both
    pass the case-insensitive name/email checks and unique indexes.
    """
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def register_lower(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


# ✅ Use create_async_engine for async operations
engine = create_async_engine(DATABASE_URL, echo=DATABASE_ECHO)
use_unicode_lower(engine)

# ✅ Create an async session
SessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)

# ✅ Define Base for models
Base = declarative_base()

async_session = SessionLocal


async def create_tables(bind=engine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
