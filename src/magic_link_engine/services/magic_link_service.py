# services/magic_link_service.py
"""
MagicLinkService
================
Issuing side of the magic-link lifecycle:

  request_magic_link(request)
    └─ feature gate (MAGIC_LINK_ENABLED)      ← nothing is issued when off
    └─ load the session / client              ← same outcome for any email
    └─ find/validate user                     ← silent for unknown emails
    └─ create the authorization session if none was given
    └─ record the manual-entry code as auth notes
    └─ MagicLinkBuilder: snapshot session → seal → URL
    └─ render + send the email
"""

import logging
from dataclasses import dataclass

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession

from magic_link_engine.auth_strategies.constants import EMAIL_CODE_EXPIRES_NOTE, EMAIL_CODE_NOTE
from magic_link_engine.core.config import settings
from magic_link_engine.core.exceptions import (
    EmailDispatchError,
    InvalidRequestError,
    MagicLinkDisabledError,
)
from magic_link_engine.core.security import SecurityUtils
from magic_link_engine.core.templates import jinja_env
from magic_link_engine.external_services.email.base import EmailProvider
from magic_link_engine.models.user import UserStatus
from magic_link_engine.repositories.client_repo import ClientRepository
from magic_link_engine.repositories.user_repo import UserRepository
from magic_link_engine.schemas.authorization import AuthorizationSession
from magic_link_engine.schemas.magic_link import MagicLinkRequest
from magic_link_engine.services import audit_service, session_adapter
from magic_link_engine.services.audit_service import AuditService
from magic_link_engine.services.auth_session_service import AuthSessionService
from magic_link_engine.services.link_builder import MagicLinkBuilder
from magic_link_engine.tokens.codec import CredentialCodec

logger = logging.getLogger(__name__)

_ISSUABLE_STATUSES = {UserStatus.ACTIVE, UserStatus.PENDING_VERIFICATION}


@dataclass
class IssuedMagicLink:
    url: str
    session_id: str
    credential_id: str


class MagicLinkService:
    def __init__(
        self,
        db: AsyncSession,
        redis_client: aioredis.Redis,
        email_provider: EmailProvider,
        audit: AuditService | None = None,
        link_builder: MagicLinkBuilder | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.user_repo = UserRepository(db)
        self.client_repo = ClientRepository(db)
        self.auth_sessions = AuthSessionService(redis_client)
        self.email_provider = email_provider
        self.audit = audit
        self.enabled = settings.MAGIC_LINK_ENABLED if enabled is None else enabled
        self.link_builder = link_builder or MagicLinkBuilder(CredentialCodec(), enabled=self.enabled)

    async def request_magic_link(
        self,
        request: MagicLinkRequest,
        ip_address: str | None = None,
    ) -> IssuedMagicLink | None:
        """
        Issue a magic link for ``request.email`` and email it.

        Returns None, without sending anything, when the email does not
        belong to a usable account; the caller must not reveal which case
        occurred. The request itself is validated before the account is
        looked up, so a malformed request fails the same way for any email.

        Raises:
          - MagicLinkDisabledError  feature switched off
          - InvalidRequestError     no session / unknown client
          - EmailDispatchError      provider refused the message
        """
        if not self.enabled:
            logger.info("[MagicLink] Link requested while the feature is disabled")
            raise MagicLinkDisabledError()

        session = await self._load_session(request)
        client_id = session.client_id if session else request.client_id
        client = await self.client_repo.get_by_client_id(client_id)
        if client is None:
            raise InvalidRequestError(f"Unknown client '{client_id}'")

        email = str(request.email)
        user = await self.user_repo.get_by_email(email)
        if not user:
            logger.warning(f"[MagicLink] Link requested for unknown email: {email}")
            return None
        if user.status not in _ISSUABLE_STATUSES:
            logger.warning(
                f"[MagicLink] Link requested for unusable account: {email} status={user.status}"
            )
            return None

        if session is None:
            session = await self._create_session(request, client.client_id)

        code = SecurityUtils.generate_otp(settings.EMAIL_CODE_LENGTH)
        context = self.link_builder.context_from_session(user.id, session)
        session.auth_notes[EMAIL_CODE_NOTE] = code
        session.auth_notes[EMAIL_CODE_EXPIRES_NOTE] = str(context.absolute_expiry)
        await self.auth_sessions.save(session)

        magic_url = self.link_builder.build_link(context)
        html_content = jinja_env.get_template("magic_link_email.html").render(
            first_name=user.first_name or "there",
            client_name=client.name or client.client_id,
            ttl_minutes=max((context.absolute_expiry - context.issued_at) // 60, 1),
            magic_url=magic_url,
            code=code,
        )

        sent = await self.email_provider.send_email([email], "Your sign-in link", html_content)
        if not sent:
            logger.error(f"[MagicLink] Email dispatch failed for {email}")
            raise EmailDispatchError()

        logger.info(
            f"[MagicLink] Link dispatched. user={user.id} client={client.client_id} "
            f"jti={context.credential_id}"
        )
        if self.audit is not None:
            await self.audit.log(
                action=audit_service.MAGIC_LINK_ISSUED,
                resource="user",
                actor_id=user.id,
                resource_id=context.credential_id,
                metadata={"client_id": client.client_id},
                ip_address=ip_address,
            )
        return IssuedMagicLink(
            url=magic_url,
            session_id=session.session_id,
            credential_id=context.credential_id,
        )

    async def _load_session(self, request: MagicLinkRequest) -> AuthorizationSession | None:
        if request.auth_session_id:
            session = await self.auth_sessions.get_session(request.auth_session_id)
            if session is None:
                raise InvalidRequestError("Authorization session not found or expired")
            return session

        if not request.client_id:
            raise InvalidRequestError("Either auth_session_id or client_id is required")
        return None

    async def _create_session(
        self, request: MagicLinkRequest, client_id: str
    ) -> AuthorizationSession:
        params = {
            session_adapter.SCOPE_PARAM: request.scope,
            session_adapter.STATE_PARAM: request.state,
            session_adapter.NONCE_PARAM: request.nonce,
            session_adapter.CODE_CHALLENGE_PARAM: request.code_challenge,
            session_adapter.CODE_CHALLENGE_METHOD_PARAM: request.code_challenge_method,
            session_adapter.RESPONSE_MODE_PARAM: request.response_mode,
        }
        return await self.auth_sessions.create_session(
            client_id, redirect_uri=request.redirect_uri, params=params
        )
