import uuid

import redis.asyncio as redis

from magic_link_engine.auth_strategies.constants import AUTH_SESSION_PREFIX
from magic_link_engine.core.config import settings
from magic_link_engine.schemas.authorization import AuthorizationSession
from magic_link_engine.services import session_adapter


class AuthSessionService:
    """Redis-backed store for in-flight authorization sessions."""

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int | None = None):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.AUTH_SESSION_TTL_SECONDS

    async def create_session(
        self,
        client_id: str,
        redirect_uri: str | None = None,
        params: dict[str, str | None] | None = None,
    ) -> AuthorizationSession:
        session = AuthorizationSession(session_id=str(uuid.uuid4()), client_id=client_id)
        if redirect_uri:
            session_adapter.set_redirect_uri(session, redirect_uri)
        for name, value in (params or {}).items():
            session_adapter.set_note_if_absent(session, name, value)
        await self.save(session)
        return session

    async def get_session(self, session_id: str) -> AuthorizationSession | None:
        data = await self.redis.get(f"{AUTH_SESSION_PREFIX}{session_id}")
        if not data:
            return None
        return AuthorizationSession.model_validate_json(data)

    async def save(self, session: AuthorizationSession) -> None:
        await self.redis.setex(
            f"{AUTH_SESSION_PREFIX}{session.session_id}",
            self.ttl_seconds,
            session.model_dump_json(),
        )

    async def delete_session(self, session_id: str) -> bool:
        result = await self.redis.delete(f"{AUTH_SESSION_PREFIX}{session_id}")
        return result > 0
