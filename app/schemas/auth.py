"""
Authentication schemas.

This module defines Pydantic models for:
- Discord OAuth data (profile, guilds, provider tokens, authorization URL)
- JWT claim payloads for access and refresh tokens
- Token validation, rotation and revocation results
- RPC request/response bodies for the client and admin auth surfaces
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.config import TokenIntent, UserRole

# ===== Discord OAuth =====


class DiscordProfile(BaseModel):
    """Discord user profile returned from /users/@me"""

    id: str = Field(..., description="Discord user ID (snowflake)")
    username: str
    discriminator: str = "0"  # Legacy, "0" for migrated accounts
    avatar: str | None = Field(default=None, description="Avatar hash")
    email: str | None = None
    verified: bool = False
    locale: str = "en"


class DiscordGuild(BaseModel):
    """Guild the user owns or can manage"""

    id: str
    name: str
    icon: str | None = None
    owner: bool = False
    permissions: str = "0"  # Bitfield serialized as a decimal string


class DiscordTokens(BaseModel):
    """Provider tokens from the authorization code exchange"""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None


class AuthUrlResult(BaseModel):
    """
    Authorization URL plus the values the caller must keep across the redirect.

    The caller persists state and code_verifier, checks state on callback, and
    passes code_verifier to the callback operation.
    """

    auth_url: str
    state: str
    code_verifier: str


class DeviceInfo(BaseModel):
    """Device metadata attached to a refresh-token record"""

    user_agent: str | None = None
    ip_address: str | None = None
    device_name: str | None = None


# ===== JWT payloads =====


class AccessTokenPayload(BaseModel):
    """Access token claims. Short-lived (15 min), never persisted."""

    sub: str
    discord_id: str
    role: UserRole
    type: Literal["access"]
    iat: int
    exp: int


class RefreshTokenPayload(BaseModel):
    """Refresh token claims. Long-lived (7 days), token_id references refresh_tokens.id."""

    sub: str
    token_id: str
    type: Literal["refresh"]
    intent: TokenIntent
    iat: int
    exp: int


class AccessTokenValid(BaseModel):
    valid: Literal[True] = True
    payload: AccessTokenPayload


class RefreshTokenValid(BaseModel):
    valid: Literal[True] = True
    payload: RefreshTokenPayload


class TokenInvalid(BaseModel):
    valid: Literal[False] = False
    reason: str


AccessTokenValidation = AccessTokenValid | TokenInvalid
RefreshTokenValidation = RefreshTokenValid | TokenInvalid


# ===== Token issuance, rotation, revocation =====


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    refresh_token_id: str


class RotationSuccess(BaseModel):
    success: Literal[True] = True
    access_token: str
    refresh_token: str


class RotationFailure(BaseModel):
    success: Literal[False] = False
    reason: str


RotationResult = RotationSuccess | RotationFailure


class RevokeSessionResult(BaseModel):
    success: bool


class RevokeAllSessionsResult(BaseModel):
    revoked_count: int


class SessionResponse(BaseModel):
    """Active session metadata for the "active devices" view. Never includes the token."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    device_name: str | None = None
    user_agent: str | None = None
    ip_address: str | None = None
    created_at: datetime
    last_used_at: datetime | None = None
    expires_at: datetime


class AuthUserResponse(BaseModel):
    """User summary returned after a successful login"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    discord_id: str
    role: UserRole
    display_name: str
    avatar_url: str | None = None
    email: str | None = None


class DiscordCallbackResponse(BaseModel):
    access_token: str
    refresh_token: str
    user: AuthUserResponse


# ===== RPC request bodies =====


class DeviceInfoRequest(BaseModel):
    """Device fields accepted on login and refresh"""

    user_agent: str | None = Field(default=None, max_length=512)
    ip_address: str | None = Field(default=None, max_length=45)
    device_name: str | None = Field(default=None, max_length=100)

    def device_info(self) -> DeviceInfo | None:
        """Device info, or None when the caller supplied nothing."""
        if not (self.user_agent or self.ip_address or self.device_name):
            return None
        return DeviceInfo(
            user_agent=self.user_agent,
            ip_address=self.ip_address,
            device_name=self.device_name,
        )


class HandleDiscordCallbackRequest(DeviceInfoRequest):
    code: str = Field(..., min_length=1)
    code_verifier: str = Field(..., min_length=1)


class ValidateAccessTokenRequest(BaseModel):
    token: str


class RefreshAccessTokenRequest(DeviceInfoRequest):
    refresh_token: str


class RevokeSessionRequest(BaseModel):
    refresh_token: str


class UserIdRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class RevokeAnyUserSessionRequest(BaseModel):
    token_id: str = Field(..., min_length=1)
