from collections.abc import AsyncGenerator

from fastapi import Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

import magic_link_engine.core.mongodb as mongodb
from magic_link_engine.core.postgres import AsyncSessionLocal
from magic_link_engine.core.redis import redis_client
from magic_link_engine.external_services.email import EmailProvider, EmailServiceFactory
from magic_link_engine.services.audit_service import AuditService
from magic_link_engine.services.replay_guard import ReplayGuard, build_replay_guard


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def get_redis() -> Redis:
    return redis_client.require()


async def get_audit_service() -> AuditService | None:
    # Auditing is best effort; without MongoDB events are only logged
    if mongodb.mongo_db is None:
        return None
    return AuditService(mongodb.mongo_db)


def get_email_provider() -> EmailProvider:
    return EmailServiceFactory.from_settings()


async def get_replay_guard(redis_conn: Redis = Depends(get_redis)) -> ReplayGuard:
    return build_replay_guard(redis_conn)
