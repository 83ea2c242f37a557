"""
Redemption Handler
==================
Runs when a user follows a magic link:

  RECEIVED
    └─ open credential, check client hint, consume replay record  → VALIDATED
    └─ load client + user, reuse or create the auth session       → SESSION_RESOLVED
    └─ copy missing OIDC parameters, revalidate redirect_uri      → PARAMETERS_APPLIED
    └─ mark the user's email verified, bind user to session       → EMAIL_VERIFIED
    └─ hand off to the flow continuation                          → COMPLETED

Any MagicLinkError moves to REJECTED. Callers only ever see a generic
``magic_link_invalid`` redirect; the concrete kind goes to logs and audit.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from magic_link_engine.auth_strategies.constants import MAGIC_LINK_ERROR_CODE
from magic_link_engine.auth_strategies.magic_link import MagicLinkStrategy
from magic_link_engine.core.config import settings
from magic_link_engine.core.exceptions import (
    ErrorKind,
    MagicLinkError,
    MalformedPayloadError,
    UserMismatchError,
    UserNotFoundError,
)
from magic_link_engine.models.client import ClientORM
from magic_link_engine.models.user import UserORM, UserStatus
from magic_link_engine.repositories.client_repo import ClientRepository
from magic_link_engine.repositories.user_repo import UserRepository
from magic_link_engine.schemas.authorization import AuthorizationContext, AuthorizationSession
from magic_link_engine.services import audit_service, session_adapter
from magic_link_engine.services.audit_service import AuditService
from magic_link_engine.services.auth_session_service import AuthSessionService
from magic_link_engine.services.flow_continuation import FlowContinuation
from magic_link_engine.services.redirect_uris import default_redirect_uri, verify_redirect_uri

logger = logging.getLogger(__name__)

_UNUSABLE_STATUSES = {UserStatus.INACTIVE, UserStatus.SUSPENDED}


class RedemptionState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    SESSION_RESOLVED = "session_resolved"
    PARAMETERS_APPLIED = "parameters_applied"
    EMAIL_VERIFIED = "email_verified"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass
class RedemptionResult:
    state: RedemptionState
    redirect_url: str
    session: AuthorizationSession | None = None
    error: ErrorKind | None = None

    @property
    def completed(self) -> bool:
        return self.state is RedemptionState.COMPLETED


def rejection_url(login_url: str | None = None) -> str:
    parts = urlsplit(login_url or settings.LOGIN_URL)
    query = parse_qsl(parts.query, keep_blank_values=True) + [("error", MAGIC_LINK_ERROR_CODE)]
    return urlunsplit(parts._replace(query=urlencode(query)))


class MagicLinkRedemptionHandler:
    def __init__(
        self,
        strategy: MagicLinkStrategy,
        user_repo: UserRepository,
        client_repo: ClientRepository,
        auth_sessions: AuthSessionService,
        continuation: FlowContinuation,
        audit: AuditService | None = None,
        login_url: str | None = None,
    ) -> None:
        self.strategy = strategy
        self.user_repo = user_repo
        self.client_repo = client_repo
        self.auth_sessions = auth_sessions
        self.continuation = continuation
        self.audit = audit
        self.login_url = login_url

    async def redeem(
        self,
        sealed: str,
        client_hint: str | None = None,
        auth_session_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RedemptionResult:
        state = RedemptionState.RECEIVED
        context: AuthorizationContext | None = None
        try:
            auth_data = await self.strategy.authenticate({"token": sealed, "client_id": client_hint})
            context = auth_data["context"]
            state = RedemptionState.VALIDATED

            client = await self.client_repo.get_by_client_id(context.issuer)
            if client is None:
                raise MalformedPayloadError(f"Unknown or disabled client '{context.issuer}'")
            user = await self._load_user(context)
            session = await self._resolve_session(context, auth_session_id)
            state = RedemptionState.SESSION_RESOLVED

            self._apply_parameters(session, context, client)
            state = RedemptionState.PARAMETERS_APPLIED

            await self.user_repo.mark_email_verified(user, self.strategy.name)
            session.authenticated_user_id = user.id
            await self.auth_sessions.save(session)
            state = RedemptionState.EMAIL_VERIFIED
            logger.info(f"[MagicLink] Email verified for user={user.id}, continuing flow")

            redirect_url = await self.continuation.next_step(session, user)
        except MagicLinkError as exc:
            logger.warning(
                f"[MagicLink] Redemption rejected in state={state.value} "
                f"kind={exc.kind.value} reason={exc.message}"
            )
            await self._audit_rejection(exc, context, ip_address, user_agent)
            return RedemptionResult(
                state=RedemptionState.REJECTED,
                redirect_url=rejection_url(self.login_url),
                error=exc.kind,
            )

        if self.audit is not None:
            await self.audit.log(
                action=audit_service.MAGIC_LINK_REDEEMED,
                resource="user",
                actor_id=user.id,
                resource_id=context.credential_id,
                metadata={"client_id": context.issuer},
                ip_address=ip_address,
                user_agent=user_agent,
            )
        return RedemptionResult(
            state=RedemptionState.COMPLETED,
            redirect_url=redirect_url,
            session=session,
        )

    async def _load_user(self, context: AuthorizationContext) -> UserORM:
        user = await self.user_repo.get(context.subject_user_id)
        if user is None or user.status in _UNUSABLE_STATUSES:
            raise UserNotFoundError(f"User {context.subject_user_id} not found or disabled")
        return user

    async def _resolve_session(
        self, context: AuthorizationContext, auth_session_id: str | None
    ) -> AuthorizationSession:
        if auth_session_id:
            session = await self.auth_sessions.get_session(auth_session_id)
            if session is not None and session.client_id == context.issuer:
                bound_user = session.authenticated_user_id
                if bound_user and bound_user != context.subject_user_id:
                    raise UserMismatchError()
                logger.info(f"[MagicLink] Reusing auth session {session.session_id}")
                return session

        session = await self.auth_sessions.create_session(context.issuer)
        logger.info(
            f"[MagicLink] Created fresh auth session {session.session_id} "
            f"for client={context.issuer}"
        )
        return session

    def _apply_parameters(
        self,
        session: AuthorizationSession,
        context: AuthorizationContext,
        client: ClientORM,
    ) -> None:
        applied = session_adapter.apply_context(session, context)

        requested = session.redirect_uri or context.redirect_uri
        redirect = verify_redirect_uri(requested, client)
        if redirect is None:
            redirect = default_redirect_uri(client)
            if requested and requested.strip():
                logger.warning(
                    f"[MagicLink] Redirect URI {requested!r} not registered for "
                    f"client={client.client_id}, using default {redirect!r}"
                )
            else:
                logger.info(
                    f"[MagicLink] No redirect URI requested for "
                    f"client={client.client_id}, using default {redirect!r}"
                )
            if redirect is None:
                raise MalformedPayloadError(f"Client '{client.client_id}' has no usable redirect URI")
        session_adapter.set_redirect_uri(session, redirect)

        logger.debug(f"[MagicLink] Applied parameters {applied} to session {session.session_id}")

    async def _audit_rejection(
        self,
        exc: MagicLinkError,
        context: AuthorizationContext | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> None:
        if self.audit is None:
            return
        await self.audit.log(
            action=audit_service.MAGIC_LINK_REJECTED,
            resource="user",
            actor_id=context.subject_user_id if context else None,
            resource_id=context.credential_id if context else None,
            metadata={"error_kind": exc.kind.value},
            ip_address=ip_address,
            user_agent=user_agent,
            status="failure",
        )
