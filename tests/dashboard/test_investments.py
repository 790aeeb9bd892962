"""Tests for investor-side investment CRUD."""

from typing import Any

from httpx import AsyncClient

INVESTMENT = {
    "goals": "retirement",
    "plan": "premium",
    "riskTolerance": "medium",
    "initialInvestment": 10000,
    "paymentMethod": "wire",
    "transactionReference": "WIRE-0001",
}


class TestInvestments:
    async def test_create_is_pending(self, authed_client: AsyncClient, registered_user: dict[str, Any]):
        response = await authed_client.post("/api/dashboard/investments", json=INVESTMENT)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "pending"
        assert data["userId"] == registered_user["user_id"]
        assert data["initialInvestment"] == 10000

    async def test_list_and_get(self, authed_client: AsyncClient):
        created = await authed_client.post("/api/dashboard/investments", json=INVESTMENT)
        investment_id = created.json()["data"]["id"]

        listed = await authed_client.get("/api/dashboard/investments")
        assert [i["id"] for i in listed.json()["data"]] == [investment_id]

        fetched = await authed_client.get(f"/api/dashboard/investments/{investment_id}")
        assert fetched.status_code == 200
        assert fetched.json()["data"]["plan"] == "premium"

    async def test_update_pending(self, authed_client: AsyncClient):
        created = await authed_client.post("/api/dashboard/investments", json=INVESTMENT)
        investment_id = created.json()["data"]["id"]
        response = await authed_client.put(
            f"/api/dashboard/investments/{investment_id}", json={"initialInvestment": 15000}
        )
        assert response.status_code == 200
        assert response.json()["data"]["initialInvestment"] == 15000
        assert response.json()["data"]["plan"] == "premium"

    async def test_delete_pending(self, authed_client: AsyncClient):
        created = await authed_client.post("/api/dashboard/investments", json=INVESTMENT)
        investment_id = created.json()["data"]["id"]
        response = await authed_client.delete(f"/api/dashboard/investments/{investment_id}")
        assert response.status_code == 200
        missing = await authed_client.get(f"/api/dashboard/investments/{investment_id}")
        assert missing.status_code == 404

    async def test_active_investment_is_locked(
        self, client: AsyncClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        created = await client.post("/api/dashboard/investments", json=INVESTMENT, headers=user_headers)
        investment_id = created.json()["data"]["id"]
        await client.put(
            f"/api/admin/investments/{investment_id}/status", json={"status": "active"}, headers=admin_headers
        )

        edit = await client.put(
            f"/api/dashboard/investments/{investment_id}", json={"initialInvestment": 1}, headers=user_headers
        )
        assert edit.status_code == 400
        delete = await client.delete(f"/api/dashboard/investments/{investment_id}", headers=user_headers)
        assert delete.status_code == 400

    async def test_invalid_payload(self, authed_client: AsyncClient):
        response = await authed_client.post(
            "/api/dashboard/investments", json={**INVESTMENT, "initialInvestment": -5, "riskTolerance": "yolo"}
        )
        assert response.status_code == 400
        fields = {e["field"] for e in response.json()["errors"]}
        assert {"initialInvestment", "riskTolerance"} <= fields

    async def test_other_users_investment_hidden(
        self, client: AsyncClient, user_headers: dict[str, str], registration_data: dict[str, Any]
    ):
        created = await client.post("/api/dashboard/investments", json=INVESTMENT, headers=user_headers)
        investment_id = created.json()["data"]["id"]

        other = await client.post("/api/auth/register", json={**registration_data, "email": "other@example.com"})
        other_headers = {"Authorization": f"Bearer {other.json()['data']['token']}"}
        response = await client.get(f"/api/dashboard/investments/{investment_id}", headers=other_headers)
        assert response.status_code == 404
