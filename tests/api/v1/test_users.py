"""Tests for current user RPC endpoints."""

import pytest
from httpx import AsyncClient

from app.models.user import Users

BASE = "/api/v1/rpc/users"


@pytest.mark.api
class TestGetCurrentUser:
    async def test_success(self, client: AsyncClient, test_user: Users):
        response = await client.post(f"{BASE}/getCurrentUser", json={"user_id": test_user.id})

        body = response.json()
        assert body["ok"] is True
        assert body["data"]["id"] == test_user.id
        assert body["data"]["display_name"] == test_user.display_name
        assert body["data"]["role"] == "REGULAR"

    async def test_missing_user(self, client: AsyncClient):
        response = await client.post(
            f"{BASE}/getCurrentUser",
            json={"user_id": "missing"},
            headers={"X-Request-Id": "req-123"},
        )

        assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.api
class TestUpdateDisplayName:
    async def test_success(self, client: AsyncClient, test_user: Users):
        response = await client.post(
            f"{BASE}/updateCurrentUserDisplayName",
            json={"user_id": test_user.id, "display_name": "  New Name  "},
        )

        assert response.json() == {"ok": True, "data": "New Name", "meta": None}

    @pytest.mark.parametrize("display_name", ["ab", "x" * 51])
    async def test_length_limits(self, client: AsyncClient, test_user: Users, display_name: str):
        response = await client.post(
            f"{BASE}/updateCurrentUserDisplayName",
            json={"user_id": test_user.id, "display_name": display_name},
        )

        assert response.status_code == 422
