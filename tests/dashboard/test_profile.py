"""Tests for profile edits with nested shallow merge."""

from typing import Any

from httpx import AsyncClient


class TestEditProfile:
    async def test_scalar_fields_overwrite(self, authed_client: AsyncClient):
        response = await authed_client.put(
            "/api/dashboard/edit-profile",
            json={"firstName": "Janet", "phoneNumber": "(555) 987-6543", "phoneType": "work"},
        )
        assert response.status_code == 200
        user = response.json()["data"]
        assert user["firstName"] == "Janet"
        assert user["lastName"] == "Investor"
        assert user["phoneNumber"] == "(555) 987-6543"
        assert user["phoneType"] == "work"

    async def test_address_is_merged(self, authed_client: AsyncClient):
        response = await authed_client.put(
            "/api/dashboard/edit-profile",
            json={"address": {"city": "Denver", "state": "CO"}},
        )
        address = response.json()["data"]["address"]
        assert address == {
            "streetAddress": "1 Main Street",
            "city": "Denver",
            "state": "CO",
            "zipCode": "73301",
        }

    async def test_investment_profile_is_merged(self, authed_client: AsyncClient):
        await authed_client.put(
            "/api/dashboard/edit-profile",
            json={"investmentProfile": {"plan": "premium", "goals": "growth"}},
        )
        response = await authed_client.put(
            "/api/dashboard/edit-profile",
            json={"investmentProfile": {"initialInvestment": 5000}},
        )
        profile = response.json()["data"]["investmentProfile"]
        assert profile["plan"] == "premium"
        assert profile["goals"] == "growth"
        assert profile["initialInvestment"] == 5000

    async def test_changes_persist(self, authed_client: AsyncClient):
        await authed_client.put("/api/dashboard/edit-profile", json={"lastName": "Smith"})
        response = await authed_client.get("/api/auth/profile")
        assert response.json()["data"]["user"]["lastName"] == "Smith"

    async def test_non_whitelisted_fields_ignored(
        self, authed_client: AsyncClient, registered_user: dict[str, Any]
    ):
        response = await authed_client.put(
            "/api/dashboard/edit-profile",
            json={"role": "admin", "email": "evil@example.com", "isActive": False},
        )
        assert response.status_code == 200
        user = response.json()["data"]
        assert user["role"] == "user"
        assert user["email"] == registered_user["email"]
        assert user["isActive"] is True

    async def test_bad_phone_rejected(self, authed_client: AsyncClient):
        response = await authed_client.put("/api/dashboard/edit-profile", json={"phoneNumber": "5551234567"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "phoneNumber"
