"""
TeamClock - Users API Tests
===========================
"""

from httpx import AsyncClient

from teamclock.core.config import settings
from teamclock.core.models import User

API = settings.API_V1_PREFIX


class TestAuthentication:

    async def test_missing_token(self, client: AsyncClient):
        response = await client.get(f"{API}/users/me")
        assert response.status_code == 401

    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(
            f"{API}/users/me",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    async def test_identity_without_profile(self, client: AsyncClient, new_identity_headers):
        response = await client.get(f"{API}/users/me", headers=new_identity_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Profile not created"


class TestProfile:

    async def test_get_me(self, client: AsyncClient, test_user: User, auth_headers):
        response = await client.get(f"{API}/users/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert data["name"] == "Test User"
        assert data["company_id"] is None
        assert "external_identity_id" not in data

    async def test_first_put_creates_profile(self, client: AsyncClient, new_identity_headers):
        response = await client.put(
            f"{API}/users/me",
            json={"name": "Carol", "role": "Designer"},
            headers=new_identity_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Carol"
        assert data["role"] == "Designer"
        assert data["avatar_ref"] == settings.DEFAULT_AVATAR_REF

        me = await client.get(f"{API}/users/me", headers=new_identity_headers)
        assert me.json()["id"] == data["id"]

    async def test_put_updates_profile(self, client: AsyncClient, test_user: User, auth_headers):
        response = await client.put(
            f"{API}/users/me",
            json={"name": "Renamed", "avatar_ref": "https://cdn.example.com/me.png"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["id"] == str(test_user.id)
        assert response.json()["name"] == "Renamed"
        assert response.json()["avatar_ref"] == "https://cdn.example.com/me.png"

    async def test_blank_name_rejected(self, client: AsyncClient, new_identity_headers):
        response = await client.put(
            f"{API}/users/me",
            json={"name": "   "},
            headers=new_identity_headers,
        )

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_FAILED"
