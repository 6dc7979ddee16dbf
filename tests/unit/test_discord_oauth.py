"""Tests for the Discord OAuth client."""

import base64
import hashlib
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.config import settings
from app.core.exceptions import (
    BadRequestException,
    ExternalServiceDataValidationException,
    ServiceUnavailableException,
)
from app.schemas.auth import DiscordGuild
from app.services import discord_oauth

PROFILE = {
    "id": "80351110224678912",
    "username": "nelly",
    "discriminator": "0",
    "avatar": "8342729096ea3675442027381ff50dfe",
    "email": "nelly@example.com",
    "verified": True,
    "locale": "en-US",
}


@pytest.mark.unit
class TestGenerateAuthUrl:
    def test_contains_pkce_and_scopes(self) -> None:
        result = discord_oauth.generate_auth_url(settings)

        url = urlparse(result.auth_url)
        params = {key: values[0] for key, values in parse_qs(url.query).items()}

        assert f"{url.scheme}://{url.netloc}{url.path}" == settings.DISCORD_AUTHORIZE_URL
        assert params["response_type"] == "code"
        assert params["client_id"] == settings.DISCORD_CLIENT_ID
        assert params["redirect_uri"] == settings.DISCORD_OAUTH_REDIRECT_URL
        assert params["scope"] == "identify email guilds"
        assert params["state"] == result.state
        assert params["code_challenge_method"] == "S256"

        expected_challenge = (
            base64.urlsafe_b64encode(hashlib.sha256(result.code_verifier.encode()).digest())
            .rstrip(b"=")
            .decode()
        )
        assert params["code_challenge"] == expected_challenge

    def test_state_and_verifier_are_fresh(self) -> None:
        first = discord_oauth.generate_auth_url(settings)
        second = discord_oauth.generate_auth_url(settings)

        assert first.state != second.state
        assert first.code_verifier != second.code_verifier
        assert 43 <= len(first.code_verifier) <= 128


@pytest.mark.unit
class TestExchangeCode:
    async def test_success(self) -> None:
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["form"] = parse_qs(request.content.decode())
            captured["auth"] = request.headers["Authorization"]
            return httpx.Response(
                200,
                json={"access_token": "discord-at", "refresh_token": "discord-rt", "expires_in": 604800},
            )

        tokens = await discord_oauth.exchange_code(
            settings, "the-code", "the-verifier", transport=httpx.MockTransport(handler)
        )

        assert tokens.access_token == "discord-at"
        assert tokens.refresh_token == "discord-rt"
        assert tokens.expires_at is not None
        assert captured["url"] == f"{settings.DISCORD_API_URL}/oauth2/token"
        assert captured["form"]["grant_type"] == ["authorization_code"]
        assert captured["form"]["code"] == ["the-code"]
        assert captured["form"]["code_verifier"] == ["the-verifier"]
        assert captured["auth"].startswith("Basic ")

    async def test_rejected_code(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(BadRequestException) as exc_info:
            await discord_oauth.exchange_code(settings, "bad", "verifier", transport=transport)

        assert exc_info.value.error_code == "AUTH_INVALID"

    async def test_provider_down(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(502))

        with pytest.raises(ServiceUnavailableException):
            await discord_oauth.exchange_code(settings, "code", "verifier", transport=transport)

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ServiceUnavailableException):
            await discord_oauth.exchange_code(settings, "code", "verifier", transport=httpx.MockTransport(handler))

    async def test_missing_access_token(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"token_type": "Bearer"}))

        with pytest.raises(ExternalServiceDataValidationException) as exc_info:
            await discord_oauth.exchange_code(settings, "code", "verifier", transport=transport)

        assert exc_info.value.context is not None
        assert exc_info.value.context.action == "exchange_code"

    async def test_non_json_body(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(ExternalServiceDataValidationException):
            await discord_oauth.exchange_code(settings, "code", "verifier", transport=transport)


@pytest.mark.unit
class TestFetchProfile:
    async def test_success(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer discord-at"
            assert request.url.path.endswith("/users/@me")
            return httpx.Response(200, json=PROFILE)

        profile = await discord_oauth.fetch_profile("discord-at", transport=httpx.MockTransport(handler))

        assert profile.id == PROFILE["id"]
        assert profile.username == "nelly"
        assert profile.email == "nelly@example.com"
        assert profile.verified is True
        assert profile.locale == "en-US"

    async def test_missing_optional_fields(self) -> None:
        body = {"id": "1", "username": "noemail", "discriminator": "0", "avatar": None}
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=body))

        profile = await discord_oauth.fetch_profile("discord-at", transport=transport)

        assert profile.avatar is None
        assert profile.email is None
        assert profile.verified is False

    @pytest.mark.parametrize(
        "body",
        [
            {"username": "no-id", "discriminator": "0", "avatar": None},
            {"id": 123, "username": "numeric-id", "discriminator": "0", "avatar": None},
            {"id": "1", "username": "no-avatar-key", "discriminator": "0"},
            ["not", "an", "object"],
        ],
    )
    async def test_unexpected_shape(self, body) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=json.dumps(body)))

        with pytest.raises(BadRequestException) as exc_info:
            await discord_oauth.fetch_profile("discord-at", transport=transport)

        assert exc_info.value.error_code == "INVALID_INPUT"

    async def test_unauthorized(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(401, json={"message": "401: Unauthorized"}))

        with pytest.raises(ServiceUnavailableException):
            await discord_oauth.fetch_profile("expired", transport=transport)

    async def test_non_json_body(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(BadRequestException) as exc_info:
            await discord_oauth.fetch_profile("discord-at", transport=transport)

        assert exc_info.value.error_code == "INVALID_INPUT"


@pytest.mark.unit
class TestFetchGuilds:
    async def test_keeps_owned_and_manageable_guilds(self) -> None:
        guilds = [
            {"id": "1", "name": "Owned", "icon": None, "owner": True, "permissions": "0"},
            {"id": "2", "name": "Manager", "icon": "abc", "owner": False, "permissions": str(0x20)},
            {"id": "3", "name": "Admin bits", "icon": None, "owner": False, "permissions": "2147483647"},
            {"id": "4", "name": "Member", "icon": None, "owner": False, "permissions": str(0x400)},
            {"id": "5", "name": "Nothing", "icon": None, "owner": False, "permissions": "0"},
        ]
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=guilds))

        result = await discord_oauth.fetch_guilds("discord-at", transport=transport)

        assert [guild.id for guild in result] == ["1", "2", "3"]

    async def test_error_degrades_to_empty(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))

        assert await discord_oauth.fetch_guilds("discord-at", transport=transport) == []

    async def test_transport_error_degrades_to_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        assert await discord_oauth.fetch_guilds("discord-at", transport=httpx.MockTransport(handler)) == []

    async def test_unexpected_shape_degrades_to_empty(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"guilds": []}))

        assert await discord_oauth.fetch_guilds("discord-at", transport=transport) == []

    async def test_non_json_body_degrades_to_empty(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

        assert await discord_oauth.fetch_guilds("discord-at", transport=transport) == []


@pytest.mark.unit
class TestCanManageGuild:
    @pytest.mark.parametrize(
        ("owner", "permissions", "expected"),
        [
            (True, "0", True),
            (False, "32", True),
            (False, "48", True),
            (False, "16", False),
            (False, "0", False),
            (False, "not-a-number", False),
            (False, "1099511627808", True),  # Beyond 32 bits
        ],
    )
    def test_permission_bit(self, owner: bool, permissions: str, expected: bool) -> None:
        guild = DiscordGuild(id="1", name="g", owner=owner, permissions=permissions)

        assert discord_oauth.can_manage_guild(guild) is expected
