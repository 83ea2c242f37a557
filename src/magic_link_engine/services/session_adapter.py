"""
Maps AuthorizationContext fields onto the protocol parameter names an
AuthorizationSession keeps in its client notes.
"""

from magic_link_engine.schemas.authorization import AuthorizationContext, AuthorizationSession

REDIRECT_URI_PARAM = "redirect_uri"
RESPONSE_TYPE_PARAM = "response_type"
SCOPE_PARAM = "scope"
STATE_PARAM = "state"
NONCE_PARAM = "nonce"
CODE_CHALLENGE_PARAM = "code_challenge"
CODE_CHALLENGE_METHOD_PARAM = "code_challenge_method"
RESPONSE_MODE_PARAM = "response_mode"

RESPONSE_TYPE_CODE = "code"

# AuthorizationContext attribute -> client note name (redirect_uri is handled apart)
CONTEXT_NOTES: dict[str, str] = {
    "scope": SCOPE_PARAM,
    "state": STATE_PARAM,
    "nonce": NONCE_PARAM,
    "code_challenge": CODE_CHALLENGE_PARAM,
    "code_challenge_method": CODE_CHALLENGE_METHOD_PARAM,
    "response_mode": RESPONSE_MODE_PARAM,
}


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def set_note_if_absent(session: AuthorizationSession, name: str, value: str | None) -> bool:
    if is_blank(value) or not is_blank(session.client_notes.get(name)):
        return False
    session.client_notes[name] = value  # type: ignore[assignment]
    return True


def apply_context(session: AuthorizationSession, context: AuthorizationContext) -> list[str]:
    """Copy present context parameters the session does not carry yet."""
    applied = []
    if set_note_if_absent(session, RESPONSE_TYPE_PARAM, RESPONSE_TYPE_CODE):
        applied.append(RESPONSE_TYPE_PARAM)
    for field, note in CONTEXT_NOTES.items():
        if set_note_if_absent(session, note, getattr(context, field)):
            applied.append(note)
    return applied


def set_redirect_uri(session: AuthorizationSession, redirect_uri: str) -> None:
    session.redirect_uri = redirect_uri
    session.client_notes[REDIRECT_URI_PARAM] = redirect_uri


def session_parameters(session: AuthorizationSession) -> dict[str, str | None]:
    """Read the session's working parameters back as AuthorizationContext fields."""
    params: dict[str, str | None] = {
        field: session.client_notes.get(note) or None for field, note in CONTEXT_NOTES.items()
    }
    params["redirect_uri"] = session.redirect_uri or session.client_notes.get(REDIRECT_URI_PARAM)
    return params
