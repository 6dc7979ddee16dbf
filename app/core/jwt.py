"""
JWT signing, verification and decoding.

This module provides:
- HS256 signing with iat/exp stamping
- Verification that reports failures as values instead of raising
- Unverified decoding for diagnostics
- Secure random identifiers for users and refresh-token records

Verification failures are expected on the hot path (expired access tokens),
so verify_jwt() returns a discriminated result rather than raising.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import jwt
from pydantic import BaseModel

from app.config import JWT_ALGORITHM

JwtFailureCode = Literal["expired", "invalid_signature", "malformed", "validation_error"]


class JwtVerifySuccess(BaseModel):
    """Successful verification with the decoded claims."""

    valid: Literal[True] = True
    payload: dict[str, Any]


class JwtVerifyFailure(BaseModel):
    """Failed verification; `code` lets callers branch (e.g. silent refresh on expiry)."""

    valid: Literal[False] = False
    reason: str
    code: JwtFailureCode


JwtVerifyResult = JwtVerifySuccess | JwtVerifyFailure


def sign_jwt(
    secret: str,
    claims: dict[str, Any],
    *,
    expires_in: int | None = None,
    subject: str | None = None,
    audience: str | list[str] | None = None,
    issuer: str | None = None,
    jwt_id: str | None = None,
) -> str:
    """
    Sign a JWT with HS256.

    Args:
        secret: Shared signing secret
        claims: Claims to encode
        expires_in: Lifetime in seconds from now (no exp claim if None)
        subject: "sub" claim
        audience: "aud" claim
        issuer: "iss" claim
        jwt_id: "jti" claim

    Returns:
        Compact signed JWT string
    """
    now = datetime.now(UTC)
    payload: dict[str, Any] = {**claims, "iat": now}

    if expires_in is not None:
        payload["exp"] = now + timedelta(seconds=expires_in)
    if subject:
        payload["sub"] = subject
    if audience:
        payload["aud"] = audience
    if issuer:
        payload["iss"] = issuer
    if jwt_id:
        payload["jti"] = jwt_id

    return jwt.encode(
        payload,
        secret,
        algorithm=JWT_ALGORITHM,
        headers={"alg": JWT_ALGORITHM, "typ": "JWT"},
    )


def verify_jwt(
    secret: str,
    token: str,
    *,
    audience: str | list[str] | None = None,
    issuer: str | None = None,
    clock_tolerance: int = 0,
) -> JwtVerifyResult:
    """
    Verify and decode a JWT.

    Args:
        secret: Shared signing secret
        token: JWT string
        audience: Expected audience(s)
        issuer: Expected issuer
        clock_tolerance: Leeway in seconds for exp/iat checks

    Returns:
        JwtVerifySuccess with the claims, or JwtVerifyFailure with reason and code
    """
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=audience,
            issuer=issuer,
            leeway=clock_tolerance,
        )
    except jwt.ExpiredSignatureError:
        return JwtVerifyFailure(reason="Token expired", code="expired")
    # InvalidSignatureError subclasses DecodeError, so it must be checked first
    except jwt.InvalidSignatureError:
        return JwtVerifyFailure(reason="Invalid signature", code="invalid_signature")
    except jwt.DecodeError:
        return JwtVerifyFailure(reason="Token malformed or invalid claims", code="malformed")
    except jwt.PyJWTError as e:
        # Audience/issuer mismatch, immature tokens, missing required claims
        return JwtVerifyFailure(
            reason=str(e) or "Token verification failed", code="validation_error"
        )

    return JwtVerifySuccess(payload=payload)


def decode_jwt_unsafe(token: str) -> dict[str, Any] | None:
    """
    Decode a JWT WITHOUT verifying its signature.

    Use only for debugging and diagnostics, never for authorization.

    Args:
        token: JWT string

    Returns:
        Claims dict, or None if the token is malformed
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.DecodeError:
        return None


def generate_secure_token(num_bytes: int = 32) -> str:
    """
    Generate a URL-safe random identifier.

    Args:
        num_bytes: Entropy in bytes (16 for user ids, 32 for refresh-token ids)

    Returns:
        URL-safe base64 string
    """
    return secrets.token_urlsafe(num_bytes)
