"""Sealing and opening magic link credentials."""

import pytest

from magic_link_engine.core.exceptions import (
    ExpiredCredentialError,
    InvalidSignatureError,
    MalformedPayloadError,
)
from magic_link_engine.core.security import ActionTokenSigner
from magic_link_engine.tokens.codec import CredentialCodec, system_clock
from tests.conftest import FIXED_NOW, TEST_SECRET


def _full_context(codec: CredentialCodec):
    return codec.issue(
        "u1",
        "app1",
        redirect_uri="https://app/cb",
        scope="openid profile",
        state="xyz",
        nonce="n-0S6",
        code_challenge="Q1",
        code_challenge_method="S256",
        response_mode="query",
    )


def test_open_returns_sealed_context(codec):
    context = _full_context(codec)

    opened = codec.open(codec.seal(context))

    assert opened == context
    assert opened.token_type == "email-magic-link"
    assert opened.issued_at == FIXED_NOW
    assert opened.absolute_expiry == FIXED_NOW + 900


def test_absent_parameters_stay_absent(codec):
    context = codec.issue("u1", "app1", scope="openid")

    opened = codec.open(codec.seal(context))

    assert opened.scope == "openid"
    assert opened.redirect_uri is None
    assert opened.state is None
    assert opened.nonce is None
    assert opened.code_challenge is None
    assert opened.code_challenge_method is None
    assert opened.response_mode is None


def test_issue_assigns_unique_credential_ids(codec):
    first = codec.issue("u1", "app1")
    second = codec.issue("u1", "app1")

    assert first.credential_id != second.credential_id


def test_issue_rejects_non_positive_ttl(codec):
    with pytest.raises(ValueError):
        codec.issue("u1", "app1", ttl_seconds=0)
    with pytest.raises(ValueError):
        codec.issue("u1", "app1", ttl_seconds=-5)


def test_any_single_character_change_fails_signature(codec):
    sealed = codec.seal(_full_context(codec))

    for index, char in enumerate(sealed):
        replacement = "A" if char != "A" else "B"
        tampered = sealed[:index] + replacement + sealed[index + 1 :]
        with pytest.raises(InvalidSignatureError):
            codec.open(tampered)


def test_truncated_and_garbage_tokens_fail_signature(codec):
    sealed = codec.seal(_full_context(codec))

    for candidate in ("", "not-a-token", sealed[:-1], sealed + "A", sealed.replace(".", "", 1)):
        with pytest.raises(InvalidSignatureError):
            codec.open(candidate)


def test_token_signed_with_other_key_fails_signature(codec, clock):
    foreign = CredentialCodec(
        signer=ActionTokenSigner(secret_key="another-signing-key-0123456789abcdef"),
        clock=clock,
    )
    sealed = foreign.seal(foreign.issue("u1", "app1"))

    with pytest.raises(InvalidSignatureError):
        codec.open(sealed)


def test_expiry_boundary(codec, clock):
    sealed = codec.seal(codec.issue("u1", "app1", ttl_seconds=60))

    clock.now = FIXED_NOW + 59
    assert codec.open(sealed).subject_user_id == "u1"

    clock.now = FIXED_NOW + 60
    with pytest.raises(ExpiredCredentialError):
        codec.open(sealed)


def test_signature_is_checked_before_expiry(codec, clock):
    sealed = codec.seal(codec.issue("u1", "app1", ttl_seconds=60))
    clock.advance(3600)

    with pytest.raises(InvalidSignatureError):
        codec.open(sealed[:-2] + ("AA" if sealed[-2:] != "AA" else "BB"))


def _raw_claims(**overrides):
    claims = {
        "typ": "email-magic-link",
        "sub": "u1",
        "azp": "app1",
        "jti": "abc123",
        "iat": FIXED_NOW,
    }
    claims.update(overrides)
    return {key: value for key, value in claims.items() if value is not None}


@pytest.mark.parametrize(
    "overrides",
    [
        {"typ": "reset-credentials"},
        {"sub": None},
        {"azp": None},
        {"jti": None},
        {"ccm": "MD5"},
        {"scp": 42},
    ],
)
def test_malformed_payload_is_rejected(codec, overrides):
    sealed = ActionTokenSigner(secret_key=TEST_SECRET).sign(_raw_claims(**overrides), FIXED_NOW + 900)

    with pytest.raises(MalformedPayloadError):
        codec.open(sealed)


def test_malformed_payload_reports_its_kind(codec):
    sealed = ActionTokenSigner(secret_key=TEST_SECRET).sign(
        _raw_claims(typ="other"), FIXED_NOW + 900
    )

    with pytest.raises(MalformedPayloadError) as excinfo:
        codec.open(sealed)

    assert excinfo.value.kind.value == "MALFORMED_PAYLOAD"


def test_real_clock_expired_credential_reports_expiry():
    signer = ActionTokenSigner(secret_key=TEST_SECRET)
    now = system_clock()
    issuing = CredentialCodec(signer=signer, clock=lambda: now - 120, ttl_seconds=60)
    sealed = issuing.seal(issuing.issue("u1", "app1"))

    with pytest.raises(ExpiredCredentialError):
        CredentialCodec(signer=signer).open(sealed)


def test_signer_returns_expiry_without_judging_it(signer):
    sealed = signer.sign({"sub": "u1"}, FIXED_NOW)

    payload, expiry = signer.verify_and_open(sealed)

    assert expiry == FIXED_NOW
    assert payload == {"sub": "u1"}
