"""
Magic Link Authentication Strategy
===================================
Flow:
  1. An authorization request is in flight for some client
  2. A signed action token (type=email-magic-link) carrying the request's
     OIDC parameters is emailed as  GET /auth/magic-link/verify?key=<token>
  3. MagicLinkStrategy.authenticate() validates signature, expiry, client
     hint and consumes the one-time replay record
  4. The redemption handler resumes the authorization session from the
     returned AuthorizationContext
"""

import logging
from typing import Any

from magic_link_engine.auth_strategies.base import TokenBasedStrategy
from magic_link_engine.auth_strategies.constants import STRATEGY_EMAIL_MAGIC_LINK
from magic_link_engine.core.exceptions import (
    AlreadyUsedError,
    ExpiredCredentialError,
    MalformedPayloadError,
)
from magic_link_engine.schemas.authorization import AuthorizationContext
from magic_link_engine.services.replay_guard import ReplayGuard, ReplayOutcome
from magic_link_engine.tokens.codec import CredentialCodec

logger = logging.getLogger(__name__)


class MagicLinkStrategy(TokenBasedStrategy):
    """
    Passwordless authentication via a signed, short-lived, one-time-use URL.

    Responsibilities:
      - authenticate() : open the credential + consume the replay record
      - validate()     : open the credential only (no replay side effect)
    """

    def __init__(self, codec: CredentialCodec, replay_guard: ReplayGuard):
        super().__init__(STRATEGY_EMAIL_MAGIC_LINK)
        self.codec = codec
        self.replay_guard = replay_guard

    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        """
        Credentials dict:
          - token     : str        the sealed credential from the URL
          - client_id : str | None  routing hint from the URL

        Raises:
          - InvalidSignatureError / ExpiredCredentialError / MalformedPayloadError
          - AlreadyUsedError  if the credential was redeemed before
        """
        token: str = credentials.get("token") or ""
        context = self.codec.open(token)

        client_hint: str | None = credentials.get("client_id")
        if client_hint is not None and client_hint != context.issuer:
            raise MalformedPayloadError("Client hint does not match the credential issuer")

        outcome = await self.replay_guard.check_and_consume(
            context.credential_id, context.absolute_expiry
        )
        if outcome is ReplayOutcome.ALREADY_USED:
            raise AlreadyUsedError()
        if outcome is ReplayOutcome.EXPIRED:
            raise ExpiredCredentialError("Credential expired before it could be consumed")

        logger.info(
            f"[MagicLink] Credential consumed. client={context.issuer} "
            f"user={context.subject_user_id} jti={context.credential_id}"
        )
        return await self.post_authenticate(
            {
                "context": context,
                "user_id": context.subject_user_id,
                "strategy": self.name,
                "jti": context.credential_id,
            }
        )

    async def validate(self, token: str) -> AuthorizationContext:
        """Stateless check: does not touch the replay ledger."""
        return self.codec.open(token)

    def get_strategy_metadata(self) -> dict[str, Any]:
        base = super().get_strategy_metadata()
        base.update(
            {
                "ttl_seconds": self.codec.ttl_seconds,
                "one_time_use": True,
                "delivery": "email",
            }
        )
        return base
