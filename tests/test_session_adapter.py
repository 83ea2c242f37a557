from magic_link_engine.models import ClientORM
from magic_link_engine.schemas.authorization import AuthorizationSession
from magic_link_engine.services import session_adapter
from magic_link_engine.services.redirect_uris import default_redirect_uri, verify_redirect_uri


def _session(**notes: str) -> AuthorizationSession:
    return AuthorizationSession(session_id="s1", client_id="app1", client_notes=dict(notes))


def test_note_is_set_only_when_absent():
    session = _session(state="original")

    assert session_adapter.set_note_if_absent(session, "state", "replacement") is False
    assert session_adapter.set_note_if_absent(session, "scope", "openid") is True
    assert session.client_notes == {"state": "original", "scope": "openid"}


def test_blank_values_are_never_written():
    session = _session()

    assert session_adapter.set_note_if_absent(session, "nonce", None) is False
    assert session_adapter.set_note_if_absent(session, "nonce", "   ") is False
    assert "nonce" not in session.client_notes


def test_blank_existing_note_counts_as_absent():
    session = _session(state="")

    assert session_adapter.set_note_if_absent(session, "state", "xyz") is True
    assert session.client_notes["state"] == "xyz"


def test_apply_context_fills_gaps_only(codec):
    session = _session(scope="openid email")
    context = codec.issue(
        "u1",
        "app1",
        scope="openid profile",
        state="xyz",
        code_challenge="Q1",
        code_challenge_method="S256",
    )

    applied = session_adapter.apply_context(session, context)

    assert applied == ["response_type", "state", "code_challenge", "code_challenge_method"]
    assert session.client_notes == {
        "scope": "openid email",
        "response_type": "code",
        "state": "xyz",
        "code_challenge": "Q1",
        "code_challenge_method": "S256",
    }


def test_session_parameters_round_trip():
    session = _session(scope="openid", state="xyz", nonce="")
    session_adapter.set_redirect_uri(session, "https://app/cb")

    params = session_adapter.session_parameters(session)

    assert params["redirect_uri"] == "https://app/cb"
    assert params["scope"] == "openid"
    assert params["state"] == "xyz"
    assert params["nonce"] is None
    assert params["code_challenge"] is None
    assert session.client_notes["redirect_uri"] == "https://app/cb"


def _client(redirect_uris, base_url=None) -> ClientORM:
    return ClientORM(client_id="app1", redirect_uris=redirect_uris, base_url=base_url)


def test_exact_redirect_uri_match():
    client = _client(["https://app/cb"])

    assert verify_redirect_uri("https://app/cb", client) == "https://app/cb"
    assert verify_redirect_uri("https://app/cb/other", client) is None
    assert verify_redirect_uri("https://evil/cb", client) is None


def test_wildcard_redirect_uri_match():
    client = _client(["https://app/callbacks/*"])

    assert verify_redirect_uri("https://app/callbacks/web", client) == "https://app/callbacks/web"
    assert verify_redirect_uri("https://app/other", client) is None


def test_fragment_and_relative_redirect_uris_are_refused():
    client = _client(["https://app/*"])

    assert verify_redirect_uri("https://app/cb#frag", client) is None
    assert verify_redirect_uri("/cb", client) is None
    assert verify_redirect_uri("", client) is None
    assert verify_redirect_uri(None, client) is None


def test_default_redirect_uri_prefers_base_url():
    assert default_redirect_uri(_client(["https://app/cb"], "https://app/home")) == "https://app/home"
    assert default_redirect_uri(_client(["https://app/*", "https://app/cb"])) == "https://app/cb"
    assert default_redirect_uri(_client(["https://app/*"])) is None
