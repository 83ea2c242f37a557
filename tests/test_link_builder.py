from urllib.parse import parse_qs, urlsplit

import pytest

from magic_link_engine.core.exceptions import MagicLinkDisabledError
from magic_link_engine.schemas.authorization import AuthorizationSession
from magic_link_engine.services import session_adapter
from magic_link_engine.services.link_builder import MagicLinkBuilder
from tests.conftest import FIXED_NOW


@pytest.fixture()
def session():
    session = AuthorizationSession(
        session_id="s1",
        client_id="app1",
        client_notes={
            "scope": "openid profile",
            "state": "xyz",
            "code_challenge": "Q1",
            "code_challenge_method": "S256",
        },
    )
    session_adapter.set_redirect_uri(session, "https://app/cb")
    return session


def test_context_snapshots_session_parameters(codec, session):
    builder = MagicLinkBuilder(codec, base_url="https://auth.example.com/api/v1", enabled=True)

    context = builder.context_from_session("u1", session)

    assert context.subject_user_id == "u1"
    assert context.issuer == "app1"
    assert context.redirect_uri == "https://app/cb"
    assert context.scope == "openid profile"
    assert context.state == "xyz"
    assert context.nonce is None
    assert context.code_challenge == "Q1"
    assert context.code_challenge_method == "S256"
    assert context.absolute_expiry == FIXED_NOW + 900


def test_later_session_changes_do_not_affect_snapshot(codec, session):
    builder = MagicLinkBuilder(codec, base_url="https://auth.example.com/api/v1", enabled=True)
    context = builder.context_from_session("u1", session)

    session.client_notes["state"] = "changed"

    assert context.state == "xyz"


def test_link_points_at_verify_endpoint(codec, session):
    builder = MagicLinkBuilder(codec, base_url="https://auth.example.com/api/v1/", enabled=True)
    context = builder.context_from_session("u1", session)

    url = builder.build_link(context)

    parts = urlsplit(url)
    query = parse_qs(parts.query)
    assert f"{parts.scheme}://{parts.netloc}{parts.path}" == (
        "https://auth.example.com/api/v1/auth/magic-link/verify"
    )
    assert query["client_id"] == ["app1"]
    assert codec.open(query["key"][0]) == context


def test_disabled_builder_issues_nothing(codec, session):
    builder = MagicLinkBuilder(codec, base_url="https://auth.example.com", enabled=False)
    context = codec.issue("u1", "app1")

    with pytest.raises(MagicLinkDisabledError):
        builder.context_from_session("u1", session)
    with pytest.raises(MagicLinkDisabledError):
        builder.build_link(context)


def test_enabled_defaults_to_settings(codec, monkeypatch):
    from magic_link_engine.core.config import settings

    monkeypatch.setattr(settings, "MAGIC_LINK_ENABLED", False)
    assert MagicLinkBuilder(codec).enabled is False

    monkeypatch.setattr(settings, "MAGIC_LINK_ENABLED", True)
    assert MagicLinkBuilder(codec).enabled is True
