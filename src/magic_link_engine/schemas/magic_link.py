"""
Pydantic schemas for the Magic Link endpoints.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from magic_link_engine.schemas.authorization import CodeChallengeMethod


class MagicLinkRequest(BaseModel):
    """
    Body for POST /auth/magic-link/request

    Either ``auth_session_id`` (an in-flight authorization request) or
    ``client_id`` plus the authorization request parameters must be given.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "client_id": "web-app",
                "redirect_uri": "https://app.example.com/callback",
                "scope": "openid profile",
                "state": "af0ifjsldkj",
                "code_challenge": "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM",
                "code_challenge_method": "S256",
            }
        }
    )

    email: EmailStr = Field(..., description="Email address to send the sign-in link to")
    auth_session_id: str | None = None
    client_id: str | None = None
    redirect_uri: str | None = None
    scope: str | None = None
    state: str | None = None
    nonce: str | None = None
    code_challenge: str | None = None
    code_challenge_method: CodeChallengeMethod | None = None
    response_mode: str | None = None


class MagicLinkRequestResponse(BaseModel):
    """
    Response for POST /auth/magic-link/request
    Always returned for a well-formed request, even for unknown emails.
    """

    message: str = Field(
        default=(
            "If an account exists for that email, a sign-in link has been sent. "
            "It can be used once."
        )
    )
