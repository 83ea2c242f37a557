from sqlalchemy import text

import magic_link_engine.core.mongodb as mongodb
from magic_link_engine.core.postgres import AsyncSessionLocal
from magic_link_engine.core.redis import redis_client


async def check_postgres() -> None:
    async with AsyncSessionLocal() as session:
        await session.execute(text("SELECT 1"))


async def check_mongodb() -> None:
    if mongodb.mongo_client is None:
        raise RuntimeError("MongoDB client is not initialized")
    await mongodb.mongo_client.admin.command("ping")


async def check_redis() -> None:
    await redis_client.require().ping()
