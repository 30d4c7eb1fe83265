import asyncio
import logging

from padel_ladder.config import configure_logging
from padel_ladder.database import engine, Base
from padel_ladder import models  # noqa: F401  registers the tables
from padel_ladder.services.players import PlayerRegistry
from padel_ladder.store import SqlStore

logger = logging.getLogger("reset_database_locally")

DEMO_PLAYERS = [
    ("Alpha", "alpha@example.com"),
    ("Bravo", "bravo@example.com"),
    ("Charlie", "charlie@example.com"),
    ("Delta", "delta@example.com"),
]


async def drop_and_recreate_all_tables():
    async with engine.begin() as conn:
        logger.warning("⚠️ Dropping all tables...")
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("🔁 Recreating all tables...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("✅ Tables recreated.")

    # 👇 Insert demo players after tables are created
    registry = PlayerRegistry(SqlStore())
    for name, email in DEMO_PLAYERS:
        await registry.create(name, email)
    logger.info("✅ Demo players inserted.")

    await engine.dispose()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(drop_and_recreate_all_tables())
