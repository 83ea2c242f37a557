import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from magic_link_engine.core.config import settings

logger = logging.getLogger(__name__)

mongo_client: AsyncIOMotorClient | None = None
mongo_db: AsyncIOMotorDatabase | None = None


async def init_mongo() -> None:
    global mongo_client, mongo_db
    logger.info("Connecting to MongoDB...")
    mongo_client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongo_db = mongo_client[settings.MONGODB_DB_NAME]
    logger.info("Connected to MongoDB.")


async def close_mongo() -> None:
    global mongo_client, mongo_db
    logger.info("Closing MongoDB connection...")
    if mongo_client is not None:
        mongo_client.close()
    mongo_client = None
    mongo_db = None
    logger.info("MongoDB connection closed.")
