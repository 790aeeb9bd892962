"""Tests for the admin investment review flow."""

from typing import Any

from httpx import AsyncClient

INVESTMENT = {
    "goals": "long-term-growth",
    "plan": "professional",
    "riskTolerance": "medium",
    "initialInvestment": 50000,
    "paymentMethod": "wire",
}


async def _create(client: AsyncClient, headers: dict[str, str]) -> dict[str, Any]:
    response = await client.post("/api/dashboard/investments", json=INVESTMENT, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestInvestmentReview:
    async def test_approve(
        self, client: AsyncClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        investment = await _create(client, user_headers)
        response = await client.put(
            f"/api/admin/investments/{investment['id']}/status", json={"status": "active"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "active"

        mine = await client.get(f"/api/dashboard/investments/{investment['id']}", headers=user_headers)
        assert mine.json()["data"]["status"] == "active"

    async def test_terminal_states_are_final(
        self, client: AsyncClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        investment = await _create(client, user_headers)
        url = f"/api/admin/investments/{investment['id']}/status"
        await client.put(url, json={"status": "active"}, headers=admin_headers)

        response = await client.put(url, json={"status": "rejected"}, headers=admin_headers)
        assert response.status_code == 400
        assert "active" in response.json()["message"]

    async def test_cannot_reset_to_pending(
        self, client: AsyncClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        investment = await _create(client, user_headers)
        response = await client.put(
            f"/api/admin/investments/{investment['id']}/status", json={"status": "pending"}, headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    async def test_unknown_investment(self, client: AsyncClient, admin_headers: dict[str, str]):
        response = await client.put(
            "/api/admin/investments/missing/status", json={"status": "active"}, headers=admin_headers
        )
        assert response.status_code == 404

    async def test_list_filter_by_status(
        self, client: AsyncClient, user_headers: dict[str, str], admin_headers: dict[str, str]
    ):
        approved = await _create(client, user_headers)
        pending = await _create(client, user_headers)
        await client.put(
            f"/api/admin/investments/{approved['id']}/status", json={"status": "active"}, headers=admin_headers
        )

        everything = await client.get("/api/admin/investments", headers=admin_headers)
        assert [i["id"] for i in everything.json()["data"]] == [pending["id"], approved["id"]]

        only_pending = await client.get("/api/admin/investments", params={"status": "pending"}, headers=admin_headers)
        assert [i["id"] for i in only_pending.json()["data"]] == [pending["id"]]

        bad = await client.get("/api/admin/investments", params={"status": "archived"}, headers=admin_headers)
        assert bad.status_code == 400
