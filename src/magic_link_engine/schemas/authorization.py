"""
Authorization state carried across the email-link hop.

``AuthorizationContext`` is the sealed, immutable payload of a magic link.
``AuthorizationSession`` is the host's live, mutable working state for an
in-flight OIDC authorization request.
"""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MAGIC_LINK_TOKEN_TYPE = "email-magic-link"

CodeChallengeMethod = Literal["plain", "S256"]


class AuthorizationContext(BaseModel):
    """OAuth2/OIDC request parameters bound to one user and one client."""

    model_config = ConfigDict(frozen=True)

    subject_user_id: str
    issuer: str = Field(..., description="client_id the credential was issued for")
    redirect_uri: str | None = None
    scope: str | None = None
    state: str | None = None
    nonce: str | None = None
    code_challenge: str | None = None
    code_challenge_method: CodeChallengeMethod | None = None
    response_mode: str | None = None

    absolute_expiry: int = Field(..., description="Epoch seconds; invalid at or after")
    issued_at: int
    credential_id: str
    token_type: Literal["email-magic-link"] = MAGIC_LINK_TOKEN_TYPE


class AuthorizationSession(BaseModel):
    session_id: str
    client_id: str
    redirect_uri: str | None = None
    authenticated_user_id: str | None = None
    # OIDC request parameters, keyed by protocol parameter name
    client_notes: dict[str, str] = Field(default_factory=dict)
    # Authenticator working data (e.g. the manual-entry email code)
    auth_notes: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
