"""Tests for the access token codec: round trip and each rejection mode."""
import time

import jwt
import pytest

from mcp_auth.tokens import AccessTokenCodec, AudienceMismatch, BadSignature, TokenExpired

SECRET = "test-jwt-secret-abc-0123456789-abcdefghij"
AUDIENCE = "https://test.example.com"


@pytest.fixture
def codec():
    return AccessTokenCodec(SECRET, audience=AUDIENCE)


def test_sign_and_verify_round_trip(codec):
    token = codec.sign("client-1", ["mcp:tools"])
    claims = codec.verify(token)
    assert claims["sub"] == "client-1"
    assert claims["scopes"] == ["mcp:tools"]
    assert claims["aud"] == AUDIENCE
    assert claims["exp"] - claims["iat"] == 3600


def test_sign_without_scopes_emits_empty_list(codec):
    claims = codec.verify(codec.sign("client-1", None))
    assert claims["scopes"] == []


def test_tokens_minted_in_same_second_differ(codec):
    assert codec.sign("client-1", ["mcp:tools"]) != codec.sign("client-1", ["mcp:tools"])


def test_custom_ttl(codec):
    claims = codec.verify(codec.sign("client-1", [], ttl=60))
    assert claims["exp"] - claims["iat"] == 60


def test_expired_token_rejected(codec):
    token = codec.sign("client-1", [], ttl=-60)
    with pytest.raises(TokenExpired):
        codec.verify(token)


def test_wrong_audience_rejected(codec):
    other = AccessTokenCodec(SECRET, audience="https://wrong-server.example.com", issuer=AUDIENCE)
    with pytest.raises(AudienceMismatch):
        codec.verify(other.sign("client-1", []))


def test_wrong_secret_rejected(codec):
    forged = AccessTokenCodec("wrong-secret-0123456789-abcdefghijklmnop", audience=AUDIENCE)
    with pytest.raises(BadSignature):
        codec.verify(forged.sign("client-1", []))


def test_garbage_rejected(codec):
    with pytest.raises(BadSignature):
        codec.verify("not-a-jwt")


def test_alg_none_rejected(codec):
    now = int(time.time())
    token = jwt.encode(
        {"sub": "client-1", "scopes": [], "aud": AUDIENCE, "iss": AUDIENCE, "iat": now, "exp": now + 60},
        None,
        algorithm="none",
    )
    with pytest.raises(BadSignature):
        codec.verify(token)


def test_missing_required_claim_rejected(codec):
    now = int(time.time())
    token = jwt.encode({"aud": AUDIENCE, "iss": AUDIENCE, "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")
    with pytest.raises(BadSignature):
        codec.verify(token)


def test_non_list_scopes_rejected(codec):
    now = int(time.time())
    token = jwt.encode(
        {"sub": "c", "scopes": "mcp:tools", "aud": AUDIENCE, "iss": AUDIENCE, "iat": now, "exp": now + 60},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(BadSignature):
        codec.verify(token)


def test_empty_secret_refused():
    with pytest.raises(ValueError):
        AccessTokenCodec("", audience=AUDIENCE)
