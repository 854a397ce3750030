from datetime import timedelta

import jwt
import pytest

from app.config import settings
from app.core.exceptions import TokenExpiredError, TokenInvalidError
from app.core.security import (
    claim_time, decode_token, hash_password, issue_token, token_digest, verify_password,
)
from app.core.timeutils import utcnow


def test_password_hash_is_not_plaintext():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert hashed.startswith("$2")
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_verify_password_with_malformed_hash():
    assert not verify_password("secret1", "not-a-bcrypt-hash")
    assert not verify_password("secret1", "")


def test_long_passwords_are_truncated_not_rejected():
    password = "x" * 100
    assert verify_password(password, hash_password(password))


def test_issued_token_claims():
    issued = issue_token("user-1", "ana@example.com", "Ana")
    claims = decode_token(issued.token)

    assert claims["userId"] == "user-1"
    assert claims["email"] == "ana@example.com"
    assert claims["name"] == "Ana"
    assert claims["exp"] - claims["iat"] == settings.token_ttl_seconds
    assert issued.expires_in == settings.token_ttl_seconds
    assert claim_time(claims, "exp") == issued.expires_at


def test_expired_token():
    issued = issue_token("user-1", "ana@example.com", "Ana", now=utcnow() - timedelta(hours=25))
    with pytest.raises(TokenExpiredError):
        decode_token(issued.token)


def test_tampered_token():
    header, _, signature = issue_token("user-1", "ana@example.com", "Ana").token.split(".")
    other_payload = issue_token("user-2", "ana@example.com", "Ana").token.split(".")[1]
    with pytest.raises(TokenInvalidError):
        decode_token(f"{header}.{other_payload}.{signature}")


def test_token_signed_with_other_secret():
    now = utcnow()
    forged = jwt.encode(
        {"userId": "user-1", "iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        "some-other-secret-that-is-long-enough",
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        decode_token(forged)


def test_token_without_expiry_is_invalid():
    token = jwt.encode({"userId": "user-1", "iat": 0}, settings.jwt_secret, algorithm="HS256")
    with pytest.raises(TokenInvalidError):
        decode_token(token)


def test_token_digest_is_stable_sha256():
    digest = token_digest("abc")
    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert token_digest("abc") == digest
