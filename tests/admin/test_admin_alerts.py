"""Tests for admin-managed performance alerts."""

from typing import Any

from httpx import AsyncClient


def _alerts_url(user: dict[str, Any]) -> str:
    return f"/api/admin/performance-alerts/{user['user_id']}"


class TestAddAlert:
    async def test_add_with_default_severity(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ):
        response = await client.post(
            _alerts_url(registered_user), json={"message": "Hash rate dropped"}, headers=admin_headers
        )
        assert response.status_code == 201
        alert = response.json()["data"]
        assert alert["id"]
        assert alert["severity"] == "info"
        assert alert["read"] is False
        assert alert["date"]

        listing = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        assert [a["id"] for a in listing.json()["data"]] == [alert["id"]]

    async def test_appends_in_order(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ):
        for message, severity in (("one", "info"), ("two", "critical")):
            await client.post(
                _alerts_url(registered_user), json={"message": message, "severity": severity}, headers=admin_headers
            )
        listing = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        alerts = listing.json()["data"]
        assert [a["message"] for a in alerts] == ["one", "two"]
        assert alerts[1]["severity"] == "critical"

    async def test_bad_severity(
        self, client: AsyncClient, registered_user: dict[str, Any], admin_headers: dict[str, str]
    ):
        response = await client.post(
            _alerts_url(registered_user), json={"message": "x", "severity": "urgent"}, headers=admin_headers
        )
        assert response.status_code == 400

    async def test_unknown_user(self, client: AsyncClient, admin_headers: dict[str, str]):
        response = await client.post(
            "/api/admin/performance-alerts/nobody", json={"message": "x"}, headers=admin_headers
        )
        assert response.status_code == 404


class TestDeleteAlert:
    async def test_delete(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ):
        keep = await client.post(_alerts_url(registered_user), json={"message": "keep"}, headers=admin_headers)
        drop = await client.post(_alerts_url(registered_user), json={"message": "drop"}, headers=admin_headers)

        response = await client.delete(
            f"{_alerts_url(registered_user)}/{drop.json()['data']['id']}", headers=admin_headers
        )
        assert response.status_code == 200

        listing = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        assert [a["id"] for a in listing.json()["data"]] == [keep.json()["data"]["id"]]

    async def test_unknown_alert_leaves_list(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ):
        await client.post(_alerts_url(registered_user), json={"message": "keep"}, headers=admin_headers)

        response = await client.delete(f"{_alerts_url(registered_user)}/missing", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Performance alert not found"

        listing = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        assert len(listing.json()["data"]) == 1
