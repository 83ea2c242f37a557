"""
Link Builder
============
Captures the in-flight authorization request from the session's working
state, seals it and produces the URL that goes into the email.
"""

from urllib.parse import urlencode

from magic_link_engine.auth_strategies.constants import (
    MAGIC_LINK_CLIENT_PARAM,
    MAGIC_LINK_KEY_PARAM,
)
from magic_link_engine.core.config import settings
from magic_link_engine.core.exceptions import MagicLinkDisabledError
from magic_link_engine.schemas.authorization import AuthorizationContext, AuthorizationSession
from magic_link_engine.services import session_adapter
from magic_link_engine.tokens.codec import CredentialCodec


class MagicLinkBuilder:
    def __init__(
        self,
        codec: CredentialCodec,
        base_url: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self.codec = codec
        self.base_url = base_url or f"{settings.APP_URL}{settings.API_V1_PREFIX}"
        self.enabled = settings.MAGIC_LINK_ENABLED if enabled is None else enabled

    @property
    def verify_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/auth/magic-link/verify"

    def context_from_session(
        self, user_id: str, session: AuthorizationSession
    ) -> AuthorizationContext:
        """Snapshot the session's parameters now, at the moment the email is triggered."""
        self._ensure_enabled()
        return self.codec.issue(user_id, session.client_id, **session_adapter.session_parameters(session))

    def build_link(self, context: AuthorizationContext) -> str:
        self._ensure_enabled()
        sealed = self.codec.seal(context)
        query = urlencode({MAGIC_LINK_KEY_PARAM: sealed, MAGIC_LINK_CLIENT_PARAM: context.issuer})
        return f"{self.verify_url}?{query}"

    def _ensure_enabled(self) -> None:
        if not self.enabled:
            raise MagicLinkDisabledError()
