"""Tests for simulated analytics: shape and ranges only."""

import random

from httpx import AsyncClient

from cmc.dashboard import analytics


class TestPortfolioPerformance:
    def test_points_per_period(self):
        for period, points in (("30D", 30), ("90D", 90), ("1Y", 365)):
            result = analytics.portfolio_performance(1000, [], period=period, rng=random.Random(1))
            assert result["period"] == period
            assert len(result["data"]) == points

    def test_unknown_period_defaults_to_30_days(self):
        result = analytics.portfolio_performance(1000, [], period="5Y", rng=random.Random(1))
        assert result["period"] == "30D"
        assert len(result["data"]) == 30

    def test_hash_rate_is_sum_of_pools(self):
        result = analytics.portfolio_performance(1000, [10.04, 5.0, 0], rng=random.Random(1))
        assert {point["hashRate"] for point in result["data"]} == {15.0}

    def test_first_point_is_investment(self):
        result = analytics.portfolio_performance(5000, [], rng=random.Random(7))
        assert result["data"][0]["value"] == 5000
        assert result["data"][0]["earnings"] == 5

    def test_seeded_output_is_reproducible(self):
        a = analytics.portfolio_performance(1000, [], rng=random.Random(42))
        b = analytics.portfolio_performance(1000, [], rng=random.Random(42), now=a["data"][-1]["date"])
        assert [p["value"] for p in a["data"]] == [p["value"] for p in b["data"]]
        assert a["summary"] == b["summary"]

    def test_summary_ranges(self):
        summary = analytics.portfolio_performance(1000, [], rng=random.Random(3))["summary"]
        assert 10 <= float(summary["totalReturn"].strip("+%")) <= 30
        assert 2 <= float(summary["volatility"].rstrip("%")) <= 7
        assert 1 <= float(summary["sharpeRatio"]) <= 3
        assert -10 <= float(summary["maxDrawdown"].rstrip("%")) <= -2


class TestMiningOperations:
    def test_power_scales_with_investment(self):
        result = analytics.mining_operations(10000, rng=random.Random(1))
        assert result["totalHashRate"] == 7.5
        assert result["activeMiners"] == 15
        assert result["pools"]["texas"]["hashRate"] == 3.0
        assert result["pools"]["wyoming"]["powerConsumption"] == round(7.5 * 0.25 * 14)
        assert set(result["pools"]) == {"texas", "nevada", "wyoming"}

    def test_ranges(self):
        texas = analytics.mining_operations(10000, rng=random.Random(1))["pools"]["texas"]
        assert 94.2 <= texas["efficiency"] <= 97.2
        assert 99.1 <= texas["uptime"] <= 99.9
        assert 65 <= texas["temperature"] <= 75

    def test_zero_investment(self):
        result = analytics.mining_operations(0, rng=random.Random(1))
        assert result["totalHashRate"] == 0
        assert result["activeMiners"] == 0


class TestNotifications:
    def test_feed_counts(self):
        result = analytics.notifications(rng=random.Random(1))
        assert result["totalCount"] == 3
        assert result["unreadCount"] == 2
        assert len({n["id"] for n in result["notifications"]}) == 3


class TestAnalyticsEndpoints:
    async def test_portfolio_performance_endpoint(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/dashboard/portfolio-performance", params={"period": "90D"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["period"] == "90D"
        assert len(data["data"]) == 90
        assert set(data["data"][0]) == {"date", "value", "earnings", "hashRate"}

    async def test_mining_operations_endpoint(self, authed_client: AsyncClient):
        await authed_client.put("/api/dashboard/edit-profile", json={"investmentProfile": {"initialInvestment": 10000}})
        response = await authed_client.get("/api/dashboard/mining-operations")
        assert response.status_code == 200
        assert response.json()["data"]["totalHashRate"] == 7.5

    async def test_notifications_endpoint(self, authed_client: AsyncClient):
        response = await authed_client.get("/api/dashboard/notifications")
        assert response.status_code == 200
        assert response.json()["data"]["unreadCount"] == 2
