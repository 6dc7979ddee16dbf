"""
Admin auth service: the client flow plus a role gate, issuing "admin" intent
tokens, and session management over any user.

Only ADMIN and SUPER_ADMIN may authenticate here. A non-admin Discord login
still refreshes the user record (the upsert commits before the gate) but is
rejected before any token is issued.
"""

from app.config import ADMIN_ROLES, TokenIntent
from app.core.context import RequestContext
from app.core.exceptions import ForbiddenException
from app.schemas.auth import (
    AccessTokenValid,
    AccessTokenValidation,
    AuthUrlResult,
    AuthUserResponse,
    DeviceInfo,
    DiscordCallbackResponse,
    RevokeAllSessionsResult,
    RevokeSessionResult,
    RotationResult,
    SessionResponse,
    TokenInvalid,
)
from app.services import auth as auth_service
from app.services import discord_oauth
from app.services import refresh_token as refresh_token_service
from app.services import token as token_service


async def initiate_discord_oauth(ctx: RequestContext) -> AuthUrlResult:
    """Same Discord authorization flow as clients; intent is applied at callback."""
    return discord_oauth.generate_auth_url(ctx.settings)


async def handle_discord_callback(
    ctx: RequestContext,
    code: str,
    code_verifier: str,
    device_info: DeviceInfo | None = None,
) -> DiscordCallbackResponse:
    """
    Complete the Discord login and issue admin tokens.

    Guilds are not fetched for the admin panel.

    Raises:
        ForbiddenException: The user does not hold an admin role, or is banned
    """
    ctx.log.info("admin_oauth_callback_started", tags=["auth"])

    discord_tokens = await discord_oauth.exchange_code(ctx.settings, code, code_verifier)
    ctx.log.debug("discord_tokens_exchanged", tags=["auth", "discord"])

    profile = await discord_oauth.fetch_profile(discord_tokens.access_token)
    ctx.log.debug("discord_profile_fetched", discord_id=profile.id, tags=["auth", "discord"])

    user = await auth_service.find_or_create_user(ctx, profile)
    auth_service.ensure_not_banned(ctx, user)

    if user.role not in ADMIN_ROLES:
        ctx.log.warning(
            "non_admin_attempted_admin_login",
            user_id=user.id,
            role=str(user.role),
            discord_id=profile.id,
            tags=["auth", "admin", "security"],
        )
        raise ForbiddenException(message_key="auth_exception_adminRequired")

    pair = await auth_service.generate_token_pair(ctx, user, TokenIntent.ADMIN, device_info)

    ctx.log.info("admin_login_successful", user_id=user.id, tags=["auth", "admin"])

    return DiscordCallbackResponse(
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
        user=AuthUserResponse.model_validate(user),
    )


async def validate_access_token(ctx: RequestContext, token: str) -> AccessTokenValidation:
    """Validate an access token and require an admin role claim."""
    result = token_service.validate_access_token(ctx.settings.JWT_SECRET, token)
    if isinstance(result, AccessTokenValid) and result.payload.role not in ADMIN_ROLES:
        return TokenInvalid(reason="Access denied: Admin role required")
    return result


async def refresh_access_token(
    ctx: RequestContext,
    refresh_token: str,
    device_info: DeviceInfo | None = None,
) -> RotationResult:
    return await auth_service.rotate_refresh_token(
        ctx, refresh_token, TokenIntent.ADMIN, device_info
    )


async def revoke_session(ctx: RequestContext, refresh_token: str) -> RevokeSessionResult:
    return await auth_service.revoke_refresh_token(ctx, refresh_token, TokenIntent.ADMIN)


# ===== Operations on other users' sessions =====


async def get_any_user_sessions(ctx: RequestContext, user_id: str) -> list[SessionResponse]:
    return await refresh_token_service.get_user_sessions(ctx, user_id)


async def revoke_any_user_session(ctx: RequestContext, token_id: str) -> RevokeSessionResult:
    """Revoke a session by record id. No token is presented, the admin acts by id."""
    success = await refresh_token_service.revoke_refresh_token(ctx, token_id)
    ctx.log.info(
        "admin_revoked_session",
        token_id=token_id,
        success=success,
        tags=["auth", "admin"],
    )
    return RevokeSessionResult(success=success)


async def revoke_all_user_sessions(ctx: RequestContext, user_id: str) -> RevokeAllSessionsResult:
    revoked_count = await refresh_token_service.revoke_all_user_tokens(ctx, user_id)
    ctx.log.info(
        "admin_revoked_all_sessions",
        user_id=user_id,
        revoked_count=revoked_count,
        tags=["auth", "admin"],
    )
    return RevokeAllSessionsResult(revoked_count=revoked_count)
