"""
Credential Codec
================
Turns an ``AuthorizationContext`` into a compact signed string and back.

Wire format (JWS claims, short tags keep the emailed URL short):

    typ  token type discriminator ("email-magic-link")
    sub  subject user id            azp  client id the link was issued for
    jti  credential id              iat  issued at (epoch seconds)
    exp  absolute expiry            rdu  redirect_uri
    scp  scope                      st   state
    nce  nonce                      cc   code_challenge
    ccm  code_challenge_method      rm   response_mode

Absent optional parameters are omitted from the payload entirely.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from magic_link_engine.core.config import settings
from magic_link_engine.core.exceptions import (
    ExpiredCredentialError,
    InvalidSignatureError,
    MalformedPayloadError,
)
from magic_link_engine.core.security import ActionTokenSigner, SignatureError, action_token_signer
from magic_link_engine.schemas.authorization import MAGIC_LINK_TOKEN_TYPE, AuthorizationContext

logger = logging.getLogger(__name__)

Clock = Callable[[], int]

# AuthorizationContext attribute -> wire tag, for the optional OIDC parameters
WIRE_FIELDS: dict[str, str] = {
    "redirect_uri": "rdu",
    "scope": "scp",
    "state": "st",
    "nonce": "nce",
    "code_challenge": "cc",
    "code_challenge_method": "ccm",
    "response_mode": "rm",
}


def system_clock() -> int:
    return int(time.time())


class CredentialCodec:
    def __init__(
        self,
        signer: ActionTokenSigner | None = None,
        clock: Clock | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        self.signer = signer or action_token_signer
        self.clock = clock or system_clock
        self.ttl_seconds = ttl_seconds or settings.MAGIC_LINK_CODE_TTL_SECONDS

    def issue(
        self,
        subject_user_id: str,
        issuer: str,
        *,
        redirect_uri: str | None = None,
        scope: str | None = None,
        state: str | None = None,
        nonce: str | None = None,
        code_challenge: str | None = None,
        code_challenge_method: str | None = None,
        response_mode: str | None = None,
        ttl_seconds: int | None = None,
    ) -> AuthorizationContext:
        """Build a fresh context expiring ``ttl_seconds`` from now."""
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        if ttl <= 0:
            raise ValueError("Magic link time-to-live must be positive")

        issued_at = self.clock()
        return AuthorizationContext(
            subject_user_id=subject_user_id,
            issuer=issuer,
            redirect_uri=redirect_uri,
            scope=scope,
            state=state,
            nonce=nonce,
            code_challenge=code_challenge,
            code_challenge_method=code_challenge_method,  # type: ignore[arg-type]
            response_mode=response_mode,
            issued_at=issued_at,
            absolute_expiry=issued_at + ttl,
            credential_id=uuid.uuid4().hex,
        )

    def seal(self, context: AuthorizationContext) -> str:
        claims: dict[str, Any] = {
            "typ": context.token_type,
            "sub": context.subject_user_id,
            "azp": context.issuer,
            "jti": context.credential_id,
            "iat": context.issued_at,
        }
        for field, tag in WIRE_FIELDS.items():
            value = getattr(context, field)
            if value is not None:
                claims[tag] = value
        return self.signer.sign(claims, context.absolute_expiry)

    def open(self, sealed: str) -> AuthorizationContext:
        """
        Verify and decode a sealed credential.

        Checks run in a fixed order: signature, then expiry, then payload
        shape. Nothing inside the payload is read before the signature holds.

        Raises:
          - InvalidSignatureError
          - ExpiredCredentialError
          - MalformedPayloadError
        """
        try:
            claims, expiry = self.signer.verify_and_open(sealed)
        except SignatureError as exc:
            logger.debug(f"[MagicLink] Signature check failed: {exc}")
            raise InvalidSignatureError() from exc

        if self.clock() >= expiry:
            raise ExpiredCredentialError()

        return self._decode(claims, expiry)

    def _decode(self, claims: dict[str, Any], expiry: int) -> AuthorizationContext:
        if claims.get("typ") != MAGIC_LINK_TOKEN_TYPE:
            raise MalformedPayloadError("Credential is not a magic link token")

        subject = claims.get("sub")
        issuer = claims.get("azp")
        credential_id = claims.get("jti")
        for name, value in (("sub", subject), ("azp", issuer), ("jti", credential_id)):
            if not isinstance(value, str) or not value:
                raise MalformedPayloadError(f"Credential claim '{name}' is missing")

        issued_at = claims.get("iat")
        if not isinstance(issued_at, int) or isinstance(issued_at, bool):
            raise MalformedPayloadError("Credential claim 'iat' is missing")

        optional: dict[str, str] = {}
        for field, tag in WIRE_FIELDS.items():
            value = claims.get(tag)
            if value is None:
                continue
            if not isinstance(value, str):
                raise MalformedPayloadError(f"Credential claim '{tag}' must be a string")
            optional[field] = value

        try:
            return AuthorizationContext(
                subject_user_id=subject,
                issuer=issuer,
                credential_id=credential_id,
                issued_at=issued_at,
                absolute_expiry=expiry,
                **optional,
            )
        except ValidationError as exc:
            raise MalformedPayloadError(f"Credential payload rejected: {exc.error_count()} error(s)") from exc
