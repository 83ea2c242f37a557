# core/security.py

import base64
import binascii
import secrets
import string
from datetime import UTC, datetime
from typing import Any

from jose import JWTError, jwt

from magic_link_engine.core.config import settings


class SignatureError(ValueError):
    """Raised when a sealed token cannot be authenticated."""


class SecurityUtils:
    @staticmethod
    def generate_otp(length: int = 6) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(length))


class ActionTokenSigner:
    """
    Seals and opens action-token payloads as compact HS256 JWS strings.

    The signer owns authenticity and integrity only. It adds the issuer,
    audience and ``exp`` claims but does not judge expiry: callers compare
    the returned expiry against their own clock.
    """

    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        issuer: str | None = None,
        audience: str | None = None,
    ) -> None:
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.issuer = issuer or settings.JWT_ISSUER
        self.audience = audience or settings.JWT_AUDIENCE

    def sign(self, payload: dict[str, Any], expiry: datetime | int) -> str:
        to_encode = payload.copy()
        if isinstance(expiry, datetime):
            expiry = int(expiry.timestamp())
        to_encode.update({"exp": int(expiry), "iss": self.issuer, "aud": self.audience})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_and_open(self, token: str) -> tuple[dict[str, Any], int]:
        """
        Verify the signature and return ``(payload, expiry)``.

        Raises:
            SignatureError: token is malformed, tampered with, or signed by
                another key / for another audience.
        """
        self._ensure_canonical(token)
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                # require_exp would switch verify_exp back on; exp presence is checked below
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise SignatureError(f"Invalid token: {str(e)}") from e

        expiry = payload.pop("exp", None)
        payload.pop("iss", None)
        payload.pop("aud", None)
        if not isinstance(expiry, int) or isinstance(expiry, bool):
            raise SignatureError("Invalid token: exp claim is not an integer")
        return payload, expiry

    @staticmethod
    def _ensure_canonical(token: str) -> None:
        # base64url decoding ignores stray characters and trailing bits, so a
        # modified segment can decode to the same bytes. Only the canonical
        # encoding of each segment is accepted.
        parts = token.split(".")
        if len(parts) != 3:
            raise SignatureError("Invalid token: expected three segments")
        for part in parts:
            try:
                raw = base64.urlsafe_b64decode(part + "=" * (-len(part) % 4))
            except (binascii.Error, ValueError) as e:
                raise SignatureError("Invalid token: bad segment encoding") from e
            if base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") != part:
                raise SignatureError("Invalid token: non-canonical segment encoding")


def utcnow() -> datetime:
    return datetime.now(UTC)


# Export instances
action_token_signer = ActionTokenSigner()
