"""Tests for JWT signing and verification."""

import pytest

from app.core.jwt import (
    JwtVerifyFailure,
    JwtVerifySuccess,
    decode_jwt_unsafe,
    generate_secure_token,
    sign_jwt,
    verify_jwt,
)

SECRET = "unit-test-secret-that-is-at-least-32-bytes"
OTHER_SECRET = "another-secret-that-is-also-32-bytes-long"


def _flip_signature_char(token: str) -> str:
    """Swap one character in the middle of the signature segment."""
    header, payload, signature = token.split(".")
    index = len(signature) // 2
    replacement = "A" if signature[index] != "A" else "B"
    signature = signature[:index] + replacement + signature[index + 1 :]
    return ".".join([header, payload, signature])


@pytest.mark.unit
class TestSignAndVerify:
    """Round-trip, expiry and tamper detection."""

    def test_round_trip_preserves_claims(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1", "role": "ADMIN"}, expires_in=60)

        result = verify_jwt(SECRET, token)

        assert isinstance(result, JwtVerifySuccess)
        assert result.payload["sub"] == "user-1"
        assert result.payload["role"] == "ADMIN"
        assert result.payload["exp"] - result.payload["iat"] == 60

    def test_optional_registered_claims(self) -> None:
        token = sign_jwt(
            SECRET,
            {},
            subject="user-2",
            audience="offerwall-admin",
            issuer="offerwall-api",
            jwt_id="jti-1",
        )

        result = verify_jwt(SECRET, token, audience="offerwall-admin", issuer="offerwall-api")

        assert isinstance(result, JwtVerifySuccess)
        assert result.payload["sub"] == "user-2"
        assert result.payload["jti"] == "jti-1"
        assert "exp" not in result.payload

    def test_expired_token(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, expires_in=-10)

        result = verify_jwt(SECRET, token)

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "expired"
        assert result.reason == "Token expired"

    def test_clock_tolerance_accepts_recently_expired(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, expires_in=-10)

        result = verify_jwt(SECRET, token, clock_tolerance=60)

        assert isinstance(result, JwtVerifySuccess)

    def test_tampered_signature(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, expires_in=60)

        result = verify_jwt(SECRET, _flip_signature_char(token))

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "invalid_signature"

    def test_wrong_secret(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, expires_in=60)

        result = verify_jwt(OTHER_SECRET, token)

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "invalid_signature"

    @pytest.mark.parametrize("token", ["not-a-jwt", "a.b", "", "a.b.c"])
    def test_malformed_token(self, token: str) -> None:
        result = verify_jwt(SECRET, token)

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "malformed"

    def test_audience_mismatch_is_validation_error(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, audience="offerwall-admin", expires_in=60)

        result = verify_jwt(SECRET, token, audience="offerwall-client")

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "validation_error"

    def test_issuer_mismatch_is_validation_error(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, issuer="someone-else", expires_in=60)

        result = verify_jwt(SECRET, token, issuer="offerwall-api")

        assert isinstance(result, JwtVerifyFailure)
        assert result.code == "validation_error"


@pytest.mark.unit
class TestDecodeUnsafe:
    def test_decodes_without_secret(self) -> None:
        token = sign_jwt(SECRET, {"sub": "user-1"}, expires_in=60)

        assert decode_jwt_unsafe(token)["sub"] == "user-1"  # type: ignore[index]

    def test_decodes_expired_and_tampered_tokens(self) -> None:
        token = _flip_signature_char(sign_jwt(SECRET, {"sub": "user-1"}, expires_in=-10))

        claims = decode_jwt_unsafe(token)

        assert claims is not None
        assert claims["sub"] == "user-1"

    def test_malformed_returns_none(self) -> None:
        assert decode_jwt_unsafe("garbage") is None


@pytest.mark.unit
def test_generate_secure_token_is_unique_and_url_safe() -> None:
    tokens = {generate_secure_token() for _ in range(100)}

    assert len(tokens) == 100
    for token in tokens:
        assert len(token) == 43  # 32 bytes base64url without padding
        assert "+" not in token and "/" not in token and "=" not in token
