"""Discord OAuth2 client (authorization code flow with PKCE)."""

from datetime import UTC, datetime
from typing import Any

import httpx
from authlib.common.security import generate_token
from authlib.integrations.httpx_client import AsyncOAuth2Client, OAuthError
from pydantic import ValidationError

from app.config import DISCORD_OAUTH_SCOPES, MANAGE_GUILD_PERMISSION, Settings, settings
from app.core.exceptions import (
    BadRequestException,
    ExternalServiceDataValidationException,
    InternalExceptionContext,
    ServiceUnavailableException,
)
from app.core.logging import get_logger
from app.schemas.auth import AuthUrlResult, DiscordGuild, DiscordProfile, DiscordTokens

logger = get_logger(__name__, base_tags=["auth", "discord"])

# PKCE verifiers must be 43-128 characters
CODE_VERIFIER_LENGTH = 64


def _oauth_client(
    config: Settings,
    access_token: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncOAuth2Client:
    """Discord OAuth2 client; with an access token it signs API requests as Bearer."""
    return AsyncOAuth2Client(
        client_id=config.DISCORD_CLIENT_ID,
        client_secret=config.DISCORD_CLIENT_SECRET,
        scope=" ".join(DISCORD_OAUTH_SCOPES),
        redirect_uri=config.DISCORD_OAUTH_REDIRECT_URL,
        code_challenge_method="S256",
        token={"access_token": access_token, "token_type": "Bearer"} if access_token else None,
        timeout=config.DISCORD_HTTP_TIMEOUT,
        transport=transport,
    )


def _raise_for_server_error(response: httpx.Response) -> httpx.Response:
    if response.status_code >= 500:
        response.raise_for_status()
    return response


def generate_auth_url(config: Settings) -> AuthUrlResult:
    """
    Generate the Discord authorization URL with a fresh state and PKCE verifier.

    The caller must persist state and code_verifier across the redirect and
    check the returned state before calling exchange_code().

    Args:
        config: Settings with Discord client id and redirect URL

    Returns:
        AuthUrlResult with auth_url, state and code_verifier
    """
    code_verifier = generate_token(CODE_VERIFIER_LENGTH)
    oauth = _oauth_client(config)
    auth_url, state = oauth.create_authorization_url(
        config.DISCORD_AUTHORIZE_URL,
        state=generate_token(),
        code_verifier=code_verifier,
    )

    return AuthUrlResult(auth_url=auth_url, state=state, code_verifier=code_verifier)


async def exchange_code(
    config: Settings,
    code: str,
    code_verifier: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DiscordTokens:
    """
    Exchange an authorization code for Discord tokens.

    Authorization codes are single-use, so this is never retried.

    Args:
        config: Settings with Discord credentials
        code: Authorization code from the callback
        code_verifier: PKCE verifier generated with the auth URL
        transport: Optional HTTP transport (tests)

    Returns:
        DiscordTokens

    Raises:
        BadRequestException: Discord rejected the code/verifier pair
        ServiceUnavailableException: Discord unreachable or failing
        ExternalServiceDataValidationException: Token response is unreadable
            or has no access_token
    """
    context = InternalExceptionContext(source="DiscordOAuth", action="exchange_code")

    async with _oauth_client(config, transport=transport) as oauth:
        oauth.register_compliance_hook("access_token_response", _raise_for_server_error)
        try:
            token = await oauth.fetch_token(
                f"{config.DISCORD_API_URL}/oauth2/token",
                code=code,
                code_verifier=code_verifier,
            )
        except OAuthError as e:
            logger.warning(
                "discord_token_exchange_rejected",
                error=e.error,
                description=e.description,
            )
            raise BadRequestException(error_code="AUTH_INVALID") from e
        except httpx.HTTPError as e:
            logger.error("discord_token_exchange_failed", error=str(e))
            raise ServiceUnavailableException() from e
        except ValueError as e:
            raise ExternalServiceDataValidationException(
                "Discord token response is not JSON",
                cause=e,
                context=context,
                tags=["discord"],
            ) from e

    access_token = token.get("access_token")
    if not isinstance(access_token, str):
        raise ExternalServiceDataValidationException(
            "Discord token response has no access_token",
            metadata={"fields": sorted(token)},
            context=context,
            tags=["discord"],
        )

    expires_at = token.get("expires_at")
    return DiscordTokens(
        access_token=access_token,
        refresh_token=token.get("refresh_token") or None,
        expires_at=datetime.fromtimestamp(expires_at, UTC) if expires_at else None,
    )


async def fetch_profile(
    access_token: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> DiscordProfile:
    """
    Fetch the Discord user profile.

    Args:
        access_token: Discord access token
        transport: Optional HTTP transport (tests)

    Returns:
        DiscordProfile

    Raises:
        ServiceUnavailableException: Transport error or non-2xx response
        BadRequestException: Response does not look like a Discord user
    """
    try:
        async with _oauth_client(settings, access_token, transport) as oauth:
            response = await oauth.get(f"{settings.DISCORD_API_URL}/users/@me")
    except httpx.HTTPError as e:
        logger.error("discord_profile_unreachable", error=str(e))
        raise ServiceUnavailableException() from e

    if response.is_error:
        logger.error(
            "discord_profile_fetch_failed",
            status_code=response.status_code,
        )
        raise ServiceUnavailableException()

    try:
        data = response.json()
    except ValueError:
        data = None

    if not _is_discord_profile_response(data):
        logger.warning("discord_profile_unexpected_shape")
        raise BadRequestException(error_code="INVALID_INPUT")

    return DiscordProfile(
        id=data["id"],
        username=data["username"],
        discriminator=data["discriminator"] or "0",
        avatar=data["avatar"],
        email=data.get("email") or None,
        verified=bool(data.get("verified", False)),
        locale=data.get("locale") or "en",
    )


async def fetch_guilds(
    access_token: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[DiscordGuild]:
    """
    Fetch guilds the user owns or has MANAGE_GUILD permission in.

    Guild caching is best-effort: failures degrade to an empty list instead of
    failing the login.

    Args:
        access_token: Discord access token
        transport: Optional HTTP transport (tests)

    Returns:
        Filtered list of guilds
    """
    try:
        async with _oauth_client(settings, access_token, transport) as oauth:
            response = await oauth.get(f"{settings.DISCORD_API_URL}/users/@me/guilds")
    except httpx.HTTPError as e:
        logger.warning("discord_guilds_unreachable", error=str(e))
        return []

    if response.is_error:
        logger.warning(
            "discord_guilds_fetch_failed",
            status_code=response.status_code,
        )
        return []

    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, list):
        logger.warning("discord_guilds_unexpected_shape")
        return []

    guilds: list[DiscordGuild] = []
    for raw in data:
        try:
            guild = DiscordGuild.model_validate(raw)
        except ValidationError:
            continue
        if can_manage_guild(guild):
            guilds.append(guild)

    return guilds


def can_manage_guild(guild: DiscordGuild) -> bool:
    """True if the user owns the guild or has the MANAGE_GUILD permission bit."""
    if guild.owner:
        return True
    try:
        permissions = int(guild.permissions)
    except ValueError:
        return False
    return permissions & MANAGE_GUILD_PERMISSION == MANAGE_GUILD_PERMISSION


def _is_discord_profile_response(data: Any) -> bool:
    """Minimal shape check for /users/@me, guarding against upstream schema drift."""
    return (
        isinstance(data, dict)
        and isinstance(data.get("id"), str)
        and isinstance(data.get("username"), str)
        and isinstance(data.get("discriminator"), str)
        and "avatar" in data
        and (data["avatar"] is None or isinstance(data["avatar"], str))
    )
