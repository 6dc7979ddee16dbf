"""
Shared auth service used by both the client and admin surfaces.

This module provides:
- User upsert from a Discord profile on every login
- Token pair issuance (refresh record first, then the signed tokens)
- Strict refresh token rotation (single-use refresh tokens)
- Session revocation from a presented refresh token

Callers pass the intent ("client" or "admin") of the surface they serve;
the policy differences between the two live in auth_client and auth_admin.
"""

from datetime import timedelta

from sqlalchemy import select

from app.config import REFRESH_TOKEN_EXPIRE_SECONDS, TokenIntent, UserRole
from app.core.context import RequestContext
from app.core.exceptions import ForbiddenException
from app.core.jwt import generate_secure_token
from app.models.user import Users, utcnow
from app.schemas.auth import (
    DeviceInfo,
    DiscordGuild,
    DiscordProfile,
    RevokeSessionResult,
    RotationFailure,
    RotationResult,
    RotationSuccess,
    TokenInvalid,
    TokenPair,
)
from app.services import refresh_token as refresh_token_service
from app.services import token as token_service

DISCORD_CDN_URL = "https://cdn.discordapp.com"


def avatar_url_for(profile: DiscordProfile) -> str | None:
    """Build the CDN avatar URL for a profile, or None if the user has no avatar."""
    if not profile.avatar:
        return None
    return f"{DISCORD_CDN_URL}/avatars/{profile.id}/{profile.avatar}.png"


# ===== User management =====


async def find_or_create_user(
    ctx: RequestContext,
    profile: DiscordProfile,
    guilds: list[DiscordGuild] | None = None,
) -> Users:
    """
    Find the user for a Discord profile, creating it on first login.

    Existing users get their profile fields refreshed from Discord. Guilds are
    cached only when supplied (the client flow fetches them, the admin flow
    does not). The change is committed before returning, so later failures in
    the login flow do not undo it.

    Args:
        ctx: Request context
        profile: Discord profile
        guilds: Guilds to cache, if fetched

    Returns:
        The user record
    """
    result = await ctx.db.execute(
        select(Users).where(Users.discord_id == profile.id).limit(1)  # type: ignore[arg-type]
    )
    user = result.scalar_one_or_none()
    now = utcnow()

    if user is not None:
        user.display_name = profile.username
        user.avatar_url = avatar_url_for(profile)
        user.email = profile.email
        user.email_is_verified = profile.verified
        if guilds is not None:
            user.discord_guilds = [guild.model_dump() for guild in guilds]
            user.discord_guilds_updated_at = now
        user.updated_at = now
        await ctx.db.commit()

        ctx.log.debug("user_profile_refreshed", user_id=user.id, tags=["auth"])
        return user

    user = Users(
        id=generate_secure_token(16),
        discord_id=profile.id,
        display_name=profile.username,
        avatar_url=avatar_url_for(profile),
        email=profile.email,
        email_is_verified=profile.verified,
        role=UserRole.REGULAR,
    )
    if guilds is not None:
        user.discord_guilds = [guild.model_dump() for guild in guilds]
        user.discord_guilds_updated_at = now
    ctx.db.add(user)
    await ctx.db.commit()

    ctx.log.info("user_created", user_id=user.id, discord_id=profile.id, tags=["auth"])
    return user


async def get_user_by_id(ctx: RequestContext, user_id: str) -> Users | None:
    """Get a user by id, or None."""
    result = await ctx.db.execute(
        select(Users).where(Users.id == user_id).limit(1)  # type: ignore[arg-type]
    )
    return result.scalar_one_or_none()


def ensure_not_banned(ctx: RequestContext, user: Users) -> None:
    """
    Refuse to issue tokens to a banned user.

    Raises:
        ForbiddenException: The user is banned (deleted_at is set)
    """
    if user.deleted_at is not None:
        ctx.log.warning(
            "banned_user_login_attempt",
            user_id=user.id,
            tags=["auth", "security"],
        )
        raise ForbiddenException(message_key="auth_exception_banned")


# ===== Token generation =====


async def generate_token_pair(
    ctx: RequestContext,
    user: Users,
    intent: TokenIntent,
    device_info: DeviceInfo | None = None,
) -> TokenPair:
    """
    Issue an access/refresh token pair.

    The refresh record is created before the refresh JWT is signed, so the
    embedded token id always resolves.

    Args:
        ctx: Request context
        user: User the tokens are issued to
        intent: Trust boundary issuing the tokens
        device_info: Optional device metadata for the refresh record

    Returns:
        TokenPair with both tokens and the refresh record id
    """
    expires_at = utcnow() + timedelta(seconds=REFRESH_TOKEN_EXPIRE_SECONDS)
    refresh_token_id = await refresh_token_service.create_refresh_token(
        ctx, user.id, expires_at, intent, device_info
    )

    secret = ctx.settings.JWT_SECRET
    access_token = token_service.generate_access_token(secret, user.id, user.discord_id, user.role)
    refresh_token = token_service.generate_refresh_token(
        secret, user.id, refresh_token_id, intent
    )

    return TokenPair(
        access_token=access_token,
        refresh_token=refresh_token,
        refresh_token_id=refresh_token_id,
    )


# ===== Token rotation =====


async def rotate_refresh_token(
    ctx: RequestContext,
    refresh_token: str,
    expected_intent: TokenIntent,
    device_info: DeviceInfo | None = None,
) -> RotationResult:
    """
    Exchange a refresh token for a new token pair, revoking the old one.

    Flow:
    1. Verify the JWT (signature, expiry, type, intent)
    2. Look up the embedded record; it must be active
    3. Check the record's intent matches the JWT's
    4. Load the user; banned users cannot rotate
    5. Revoke the old record, then issue a new pair reusing its device info
       when none is supplied

    A refresh token is single-use: replaying it after rotation fails at step 2.
    The revoke in step 5 is conditional, so if two rotations of the same token
    race, only the one whose revoke lands gets a new pair.

    Returns:
        RotationSuccess with the new tokens, or RotationFailure with a reason
    """
    validation = token_service.validate_refresh_token(
        ctx.settings.JWT_SECRET, refresh_token, expected_intent
    )
    if isinstance(validation, TokenInvalid):
        return RotationFailure(reason=validation.reason)

    payload = validation.payload

    db_token = await refresh_token_service.find_refresh_token(ctx, payload.token_id)
    if db_token is None:
        ctx.log.info(
            "refresh_token_not_active",
            token_id=payload.token_id,
            intent=str(expected_intent),
            tags=["auth"],
        )
        return RotationFailure(reason="Refresh token not found or expired")

    if db_token.intent != payload.intent:
        ctx.log.warning(
            "refresh_token_intent_mismatch",
            token_id=payload.token_id,
            db_intent=str(db_token.intent),
            jwt_intent=str(payload.intent),
            tags=["auth", "security"],
        )
        return RotationFailure(reason="Token intent mismatch")

    user = await get_user_by_id(ctx, payload.sub)
    if user is None:
        return RotationFailure(reason="User not found")

    if user.deleted_at is not None:
        ctx.log.warning(
            "banned_user_refresh_attempt",
            user_id=user.id,
            token_id=payload.token_id,
            tags=["auth", "security"],
        )
        return RotationFailure(reason="User is banned")

    # Capture device info before the row is touched again
    effective_device_info = device_info or DeviceInfo(
        user_agent=db_token.user_agent,
        ip_address=db_token.ip_address,
        device_name=db_token.device_name,
    )

    await refresh_token_service.update_last_used(ctx, payload.token_id)

    revoked = await refresh_token_service.revoke_refresh_token(ctx, payload.token_id)
    if not revoked:
        # Another rotation of the same token won the race
        ctx.log.warning(
            "refresh_token_rotation_race_lost",
            token_id=payload.token_id,
            user_id=user.id,
            tags=["auth", "security"],
        )
        return RotationFailure(reason="Refresh token not found or expired")

    pair = await generate_token_pair(ctx, user, payload.intent, effective_device_info)

    ctx.log.info(
        "refresh_token_rotated",
        user_id=user.id,
        intent=str(payload.intent),
        tags=["auth"],
    )
    return RotationSuccess(access_token=pair.access_token, refresh_token=pair.refresh_token)


# ===== Session revocation =====


async def revoke_refresh_token(
    ctx: RequestContext,
    refresh_token: str,
    expected_intent: TokenIntent,
) -> RevokeSessionResult:
    """
    Revoke the session behind a refresh token (logout from one device).

    An invalid token is not an error: the session is already unusable, so the
    result is simply success=False.
    """
    validation = token_service.validate_refresh_token(
        ctx.settings.JWT_SECRET, refresh_token, expected_intent
    )
    if isinstance(validation, TokenInvalid):
        return RevokeSessionResult(success=False)

    await refresh_token_service.revoke_refresh_token(ctx, validation.payload.token_id)

    ctx.log.info("session_revoked", user_id=validation.payload.sub, tags=["auth"])
    return RevokeSessionResult(success=True)
