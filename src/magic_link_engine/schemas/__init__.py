from .authorization import (
    MAGIC_LINK_TOKEN_TYPE,
    AuthorizationContext,
    AuthorizationSession,
    CodeChallengeMethod,
)
from .magic_link import MagicLinkRequest, MagicLinkRequestResponse

__all__ = [
    "MAGIC_LINK_TOKEN_TYPE",
    "AuthorizationContext",
    "AuthorizationSession",
    "CodeChallengeMethod",
    "MagicLinkRequest",
    "MagicLinkRequestResponse",
]
