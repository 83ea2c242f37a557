"""
Continuation of the authorization flow once the user is authenticated.

The default continuation finishes an authorization-code flow: it mints a
one-time code bound to the session's client, user, redirect URI and PKCE
challenge, retires the authorization session and sends the browser back to
the client.
"""

import json
import logging
import secrets
from abc import ABC, abstractmethod
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import redis.asyncio as aioredis

from magic_link_engine.auth_strategies.constants import AUTH_CODE_PREFIX
from magic_link_engine.core.config import settings
from magic_link_engine.core.security import utcnow
from magic_link_engine.models.user import UserORM
from magic_link_engine.schemas.authorization import AuthorizationSession
from magic_link_engine.services import session_adapter
from magic_link_engine.services.auth_session_service import AuthSessionService

logger = logging.getLogger(__name__)


class FlowContinuation(ABC):
    @abstractmethod
    async def next_step(self, session: AuthorizationSession, user: UserORM) -> str:
        """Return the URL the browser should be redirected to next."""
        pass


def build_client_redirect(redirect_uri: str, params: dict[str, str], response_mode: str | None) -> str:
    parts = urlsplit(redirect_uri)
    if response_mode == "fragment":
        return urlunsplit(parts._replace(fragment=urlencode(params)))
    query = parse_qsl(parts.query, keep_blank_values=True) + list(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


class AuthorizationCodeContinuation(FlowContinuation):
    def __init__(
        self,
        redis_client: aioredis.Redis,
        auth_sessions: AuthSessionService,
        code_ttl_seconds: int | None = None,
    ) -> None:
        self.redis = redis_client
        self.auth_sessions = auth_sessions
        self.code_ttl_seconds = code_ttl_seconds or settings.AUTH_CODE_TTL_SECONDS

    async def next_step(self, session: AuthorizationSession, user: UserORM) -> str:
        if not session.redirect_uri:
            raise ValueError("Authorization session has no redirect URI")

        notes = session.client_notes
        code = secrets.token_urlsafe(32)
        grant = {
            "client_id": session.client_id,
            "user_id": user.id,
            "redirect_uri": session.redirect_uri,
            "scope": notes.get(session_adapter.SCOPE_PARAM),
            "nonce": notes.get(session_adapter.NONCE_PARAM),
            "code_challenge": notes.get(session_adapter.CODE_CHALLENGE_PARAM),
            "code_challenge_method": notes.get(session_adapter.CODE_CHALLENGE_METHOD_PARAM),
            "auth_time": int(utcnow().timestamp()),
        }
        await self.redis.setex(f"{AUTH_CODE_PREFIX}{code}", self.code_ttl_seconds, json.dumps(grant))
        await self.auth_sessions.delete_session(session.session_id)

        params = {"code": code}
        state = notes.get(session_adapter.STATE_PARAM)
        if state:
            params["state"] = state

        response_mode = notes.get(session_adapter.RESPONSE_MODE_PARAM)
        if response_mode not in (None, "query", "fragment"):
            logger.info(f"[MagicLink] response_mode={response_mode} not supported, using query")
        logger.info(f"[MagicLink] Authorization code issued. client={session.client_id} user={user.id}")
        return build_client_redirect(session.redirect_uri, params, response_mode)
