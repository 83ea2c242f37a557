"""
Magic Link public endpoints
===========================

POST /auth/magic-link/request
  - Accepts an email address plus the in-flight authorization request
    (an auth session id, or client_id + OIDC parameters)
  - Seals the request into a one-time credential and emails the link
  - Always responds 202 for well-formed requests (prevents enumeration)

GET  /auth/magic-link/verify?key=<credential>&client_id=<client>
  - Validates signature, expiry and the one-time replay record
  - Resumes the authorization session and redirects back to the client
  - Every failure redirects to the login page with a generic error code
"""

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from magic_link_engine.api.dependencies.deps import (
    get_audit_service,
    get_db,
    get_email_provider,
    get_redis,
    get_replay_guard,
)
from magic_link_engine.auth_strategies.magic_link import MagicLinkStrategy
from magic_link_engine.core.config import settings
from magic_link_engine.core.exceptions import (
    MagicLinkEngineException,
    convert_to_http_exception,
)
from magic_link_engine.external_services.email import EmailProvider
from magic_link_engine.repositories.client_repo import ClientRepository
from magic_link_engine.repositories.user_repo import UserRepository
from magic_link_engine.schemas.magic_link import MagicLinkRequest, MagicLinkRequestResponse
from magic_link_engine.services.audit_service import AuditService
from magic_link_engine.services.auth_session_service import AuthSessionService
from magic_link_engine.services.flow_continuation import AuthorizationCodeContinuation
from magic_link_engine.services.magic_link_service import MagicLinkService
from magic_link_engine.services.redemption_handler import (
    MagicLinkRedemptionHandler,
    rejection_url,
)
from magic_link_engine.services.replay_guard import ReplayGuard
from magic_link_engine.tokens.codec import CredentialCodec

logger = logging.getLogger(__name__)

router = APIRouter()


def _build_redemption_handler(
    db: AsyncSession,
    redis_conn: aioredis.Redis,
    replay_guard: ReplayGuard,
    audit: AuditService | None,
) -> MagicLinkRedemptionHandler:
    auth_sessions = AuthSessionService(redis_conn)
    return MagicLinkRedemptionHandler(
        strategy=MagicLinkStrategy(CredentialCodec(), replay_guard),
        user_repo=UserRepository(db),
        client_repo=ClientRepository(db),
        auth_sessions=auth_sessions,
        continuation=AuthorizationCodeContinuation(redis_conn, auth_sessions),
        audit=audit,
    )


# ---------------------------------------------------------------------------
# POST /auth/magic-link/request
# ---------------------------------------------------------------------------


@router.post(
    "/request",
    response_model=MagicLinkRequestResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a magic sign-in link",
)
async def request_magic_link(
    body: MagicLinkRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis_conn: aioredis.Redis = Depends(get_redis),
    email_provider: EmailProvider = Depends(get_email_provider),
    audit: AuditService | None = Depends(get_audit_service),
) -> MagicLinkRequestResponse:
    svc = MagicLinkService(db, redis_conn, email_provider, audit=audit)
    ip = request.client.host if request.client else None

    try:
        await svc.request_magic_link(body, ip_address=ip)
    except MagicLinkEngineException as exc:
        logger.warning(f"[MagicLink] request_magic_link refused: {exc.error_code} {exc.message}")
        raise convert_to_http_exception(exc) from exc
    except Exception as exc:
        # Log the real error server-side but never leak it to the caller
        logger.exception(f"[MagicLink] request_magic_link error: {exc}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to send the magic link email. Please try again shortly.",
        ) from exc

    return MagicLinkRequestResponse()


# ---------------------------------------------------------------------------
# GET /auth/magic-link/verify
# ---------------------------------------------------------------------------


@router.get(
    "/verify",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    summary="Redeem a magic sign-in link",
)
async def verify_magic_link(
    request: Request,
    key: str = Query(default="", description="Sealed magic link credential"),
    client_id: str | None = Query(default=None, description="Client the link was issued for"),
    db: AsyncSession = Depends(get_db),
    redis_conn: aioredis.Redis = Depends(get_redis),
    replay_guard: ReplayGuard = Depends(get_replay_guard),
    audit: AuditService | None = Depends(get_audit_service),
) -> RedirectResponse:
    handler = _build_redemption_handler(db, redis_conn, replay_guard, audit)

    try:
        result = await handler.redeem(
            key,
            client_hint=client_id,
            auth_session_id=request.cookies.get(settings.AUTH_SESSION_COOKIE),
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    except Exception as exc:
        logger.exception(f"[MagicLink] verify_magic_link unexpected error: {exc}")
        return RedirectResponse(rejection_url(), status_code=status.HTTP_302_FOUND)

    response = RedirectResponse(result.redirect_url, status_code=status.HTTP_302_FOUND)
    if result.completed:
        response.delete_cookie(settings.AUTH_SESSION_COOKIE)
    return response
