"""
Access and refresh token generation and validation.

Access tokens are short-lived (15 min) and self-contained. Refresh tokens are
long-lived (7 days) and carry the id of their refresh_tokens row; validating a
refresh token here only checks the JWT, not the database record.
"""

from pydantic import ValidationError

from app.config import (
    ACCESS_TOKEN_EXPIRE_SECONDS,
    REFRESH_TOKEN_EXPIRE_SECONDS,
    TokenIntent,
    UserRole,
)
from app.core.jwt import JwtVerifyFailure, sign_jwt, verify_jwt
from app.schemas.auth import (
    AccessTokenPayload,
    AccessTokenValid,
    AccessTokenValidation,
    RefreshTokenPayload,
    RefreshTokenValid,
    RefreshTokenValidation,
    TokenInvalid,
)


def generate_access_token(secret: str, sub: str, discord_id: str, role: UserRole | str) -> str:
    """
    Generate an access token.

    Args:
        secret: JWT secret
        sub: User id
        discord_id: Discord user id
        role: User role at issue time

    Returns:
        Signed JWT with type "access"
    """
    claims = {
        "sub": sub,
        "discord_id": discord_id,
        "role": str(role),
        "type": "access",
    }
    return sign_jwt(secret, claims, expires_in=ACCESS_TOKEN_EXPIRE_SECONDS)


def generate_refresh_token(secret: str, sub: str, token_id: str, intent: TokenIntent) -> str:
    """
    Generate a refresh token.

    Args:
        secret: JWT secret
        sub: User id
        token_id: refresh_tokens row id
        intent: Trust boundary issuing the token

    Returns:
        Signed JWT with type "refresh"
    """
    claims = {
        "sub": sub,
        "token_id": token_id,
        "type": "refresh",
        "intent": str(intent),
    }
    return sign_jwt(secret, claims, expires_in=REFRESH_TOKEN_EXPIRE_SECONDS)


def validate_access_token(secret: str, token: str) -> AccessTokenValidation:
    """Validate an access token's signature, expiry and type."""
    result = verify_jwt(secret, token)
    if isinstance(result, JwtVerifyFailure):
        return TokenInvalid(reason=result.reason)

    if result.payload.get("type") != "access":
        return TokenInvalid(reason="Invalid token type")

    try:
        payload = AccessTokenPayload.model_validate(result.payload)
    except ValidationError:
        return TokenInvalid(reason="Invalid token payload")

    return AccessTokenValid(payload=payload)


def validate_refresh_token(
    secret: str,
    token: str,
    expected_intent: TokenIntent = TokenIntent.CLIENT,
) -> RefreshTokenValidation:
    """
    Validate a refresh token JWT (no database check).

    Rejects tokens of the wrong type and tokens minted for the other trust
    boundary, so an admin refresh token cannot be replayed against the client
    surface and vice versa.
    """
    result = verify_jwt(secret, token)
    if isinstance(result, JwtVerifyFailure):
        return TokenInvalid(reason=result.reason)

    claims = result.payload
    if claims.get("type") != "refresh":
        return TokenInvalid(reason="Invalid token type")

    if claims.get("intent") != expected_intent:
        return TokenInvalid(
            reason=f"Invalid token intent: expected {expected_intent}, got {claims.get('intent')}"
        )

    try:
        payload = RefreshTokenPayload.model_validate(claims)
    except ValidationError:
        return TokenInvalid(reason="Invalid token payload")

    return RefreshTokenValid(payload=payload)
