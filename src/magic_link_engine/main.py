import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import magic_link_engine.core.mongodb as mongodb
from magic_link_engine.api.v1.router import api_router
from magic_link_engine.core.config import settings
from magic_link_engine.core.redis import redis_client

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)

logger = logging.getLogger(__name__)

# Silence noisy libraries
logging.getLogger("pymongo").setLevel(logging.WARNING)
logging.getLogger("motor").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("Starting up MagicLinkEngine...")
    if not settings.MAGIC_LINK_ENABLED:
        logger.warning("MAGIC_LINK_ENABLED is false: no magic links will be issued")

    await mongodb.init_mongo()
    await redis_client.connect()

    # Audit log indexes
    if mongodb.mongo_db is not None:
        collection = mongodb.mongo_db["audit_logs"]
        await collection.create_index("actor_id")
        await collection.create_index("action")
        await collection.create_index("created_at")

    yield

    logger.info("Shutting down MagicLinkEngine...")
    await mongodb.close_mongo()
    await redis_client.disconnect()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=settings.APP_DESCRIPTION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    lifespan=lifespan,
)


origins = (
    settings.CORS_ORIGINS if isinstance(settings.CORS_ORIGINS, list) else [settings.CORS_ORIGINS]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


app.include_router(api_router, prefix=settings.API_V1_PREFIX)

if __name__ == "__main__":
    uvicorn.run(
        "magic_link_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
