"""Tests for the investor's view of performance alerts."""

from typing import Any

from httpx import AsyncClient


class TestUserAlerts:
    async def test_list_and_mark_read(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        user_headers: dict[str, str],
        admin_headers: dict[str, str],
    ):
        created = await client.post(
            f"/api/admin/performance-alerts/{registered_user['user_id']}",
            json={"message": "Hash rate dropped 5%", "severity": "warning"},
            headers=admin_headers,
        )
        alert_id = created.json()["data"]["id"]

        listed = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        assert listed.status_code == 200
        alerts = listed.json()["data"]
        assert [a["id"] for a in alerts] == [alert_id]
        assert alerts[0]["read"] is False

        marked = await client.patch(f"/api/dashboard/performance-alerts/{alert_id}/mark-read", headers=user_headers)
        assert marked.status_code == 200
        assert marked.json()["data"]["read"] is True

        listed = await client.get("/api/dashboard/performance-alerts", headers=user_headers)
        assert listed.json()["data"][0]["read"] is True

    async def test_mark_unknown_alert_404(self, authed_client: AsyncClient):
        response = await authed_client.patch("/api/dashboard/performance-alerts/nope/mark-read")
        assert response.status_code == 404
        assert response.json()["message"] == "Performance alert not found"

    async def test_cannot_mark_another_users_alert(
        self,
        client: AsyncClient,
        registered_user: dict[str, Any],
        registration_data: dict[str, Any],
        admin_headers: dict[str, str],
    ):
        created = await client.post(
            f"/api/admin/performance-alerts/{registered_user['user_id']}",
            json={"message": "Maintenance window"},
            headers=admin_headers,
        )
        alert_id = created.json()["data"]["id"]

        other = await client.post(
            "/api/auth/register",
            json={**registration_data, "email": "other@example.com"},
        )
        other_headers = {"Authorization": f"Bearer {other.json()['data']['token']}"}

        response = await client.patch(
            f"/api/dashboard/performance-alerts/{alert_id}/mark-read", headers=other_headers
        )
        assert response.status_code == 404
