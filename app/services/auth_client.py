"""
Client auth service: Discord login, token refresh and session management for
the public client surface. Every token issued or accepted here carries the
"client" intent.
"""

import asyncio

from app.config import TokenIntent
from app.core.context import RequestContext
from app.schemas.auth import (
    AccessTokenValidation,
    AuthUrlResult,
    AuthUserResponse,
    DeviceInfo,
    DiscordCallbackResponse,
    RevokeAllSessionsResult,
    RevokeSessionResult,
    RotationResult,
    SessionResponse,
)
from app.services import auth as auth_service
from app.services import discord_oauth
from app.services import refresh_token as refresh_token_service
from app.services import token as token_service


async def initiate_discord_oauth(ctx: RequestContext) -> AuthUrlResult:
    """Generate the Discord authorization URL with state and PKCE verifier."""
    return discord_oauth.generate_auth_url(ctx.settings)


async def handle_discord_callback(
    ctx: RequestContext,
    code: str,
    code_verifier: str,
    device_info: DeviceInfo | None = None,
) -> DiscordCallbackResponse:
    """
    Complete the Discord login and issue client tokens.

    The profile and the manageable guilds are fetched concurrently; guilds
    are cached on the user record.

    Args:
        ctx: Request context
        code: Authorization code from Discord
        code_verifier: PKCE verifier generated with the auth URL
        device_info: Optional device metadata for the session

    Returns:
        Access token, refresh token and the user summary

    Raises:
        ForbiddenException: The user is banned
    """
    discord_tokens = await discord_oauth.exchange_code(ctx.settings, code, code_verifier)

    profile, guilds = await asyncio.gather(
        discord_oauth.fetch_profile(discord_tokens.access_token),
        discord_oauth.fetch_guilds(discord_tokens.access_token),
    )

    user = await auth_service.find_or_create_user(ctx, profile, guilds)
    auth_service.ensure_not_banned(ctx, user)
    pair = await auth_service.generate_token_pair(ctx, user, TokenIntent.CLIENT, device_info)

    ctx.log.info(
        "client_login_successful",
        user_id=user.id,
        guild_count=len(guilds),
        tags=["auth"],
    )

    return DiscordCallbackResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=AuthUserResponse.model_validate(user),
    )


async def validate_access_token(ctx: RequestContext, token: str) -> AccessTokenValidation:
    return token_service.validate_access_token(ctx.settings.JWT_SECRET, token)


async def refresh_access_token(
    ctx: RequestContext,
    refresh_token: str,
    device_info: DeviceInfo | None = None,
) -> RotationResult:
    """Rotate a client refresh token. The presented token is spent either way."""
    return await auth_service.rotate_refresh_token(
        ctx, refresh_token, TokenIntent.CLIENT, device_info
    )


async def revoke_session(ctx: RequestContext, refresh_token: str) -> RevokeSessionResult:
    """Logout from the current device."""
    return await auth_service.revoke_refresh_token(ctx, refresh_token, TokenIntent.CLIENT)


async def revoke_all_sessions(ctx: RequestContext, user_id: str) -> RevokeAllSessionsResult:
    """Logout from all devices."""
    revoked_count = await refresh_token_service.revoke_all_user_tokens(ctx, user_id)
    ctx.log.info("all_sessions_revoked", user_id=user_id, revoked_count=revoked_count, tags=["auth"])
    return RevokeAllSessionsResult(revoked_count=revoked_count)


async def get_user_sessions(ctx: RequestContext, user_id: str) -> list[SessionResponse]:
    return await refresh_token_service.get_user_sessions(ctx, user_id)
