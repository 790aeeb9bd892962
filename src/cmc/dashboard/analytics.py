"""
Simulated dashboard analytics.

Chart and operations figures are derived from the user's declared investment
amount with random jitter. Nothing here is persisted; callers may pass a seeded
``random.Random`` to get reproducible output.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any

PERIOD_POINTS = {"30D": 30, "90D": 90, "1Y": 365}
DEFAULT_PERIOD = "30D"

DAILY_GROWTH = 0.002
DAILY_VOLATILITY = 0.02

# Share of total hash power per site
_SITES = (
    ("texas", "Texas Mining Pool", 0.40, 94.2, 3, 99.1, 0.8, 65, 10),
    ("nevada", "Nevada Mining Pool", 0.35, 92.8, 4, 98.9, 1.0, 62, 12),
    ("wyoming", "Wyoming Mining Pool", 0.25, 91.5, 5, 99.3, 0.6, 59, 15),
)


def _round1(value: float) -> float:
    return round(value * 10) / 10


def mining_power_for(investment: float) -> float:
    """TH/s attributed to an investment: 0.75 TH/s per $1,000, one decimal."""
    return _round1(investment / 1000 * 0.75)


def portfolio_performance(
    investment: float,
    pool_hash_rates: list[float],
    period: str = DEFAULT_PERIOD,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Daily portfolio value series for the requested period.

    Unknown periods fall back to 30 days. ``hashRate`` on every point is the
    summed hash rate of the user's pools.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    if period not in PERIOD_POINTS:
        period = DEFAULT_PERIOD
    points = PERIOD_POINTS[period]
    hash_rate = _round1(sum(rate or 0 for rate in pool_hash_rates))

    data = []
    for i in range(points):
        volatility = (rng.random() - 0.5) * DAILY_VOLATILITY
        value = investment * (1 + DAILY_GROWTH + volatility) ** i
        data.append(
            {
                "date": now - timedelta(days=points - i),
                "value": round(value),
                "earnings": round(value * 0.001),
                "hashRate": hash_rate,
            }
        )

    return {
        "period": period,
        "data": data,
        "summary": {
            "totalReturn": f"+{rng.random() * 20 + 10:.1f}%",
            "volatility": f"{rng.random() * 5 + 2:.1f}%",
            "sharpeRatio": f"{rng.random() * 2 + 1:.2f}",
            "maxDrawdown": f"-{rng.random() * 8 + 2:.1f}%",
        },
    }


def mining_operations(investment: float, rng: random.Random | None = None) -> dict[str, Any]:
    """Per-site operations snapshot scaled to the user's mining power."""
    rng = rng or random.Random()
    power = mining_power_for(investment)

    pools = {}
    for key, name, share, eff_base, eff_span, up_base, up_span, temp_base, temp_span in _SITES:
        pools[key] = {
            "name": name,
            "hashRate": _round1(power * share),
            "efficiency": eff_base + rng.random() * eff_span,
            "uptime": up_base + rng.random() * up_span,
            "temperature": temp_base + rng.random() * temp_span,
            "powerConsumption": round(power * share * 14),
            "status": "operational",
        }

    return {
        "totalHashRate": power,
        "activeMiners": round(power * 2),
        "pools": pools,
        "globalMetrics": {
            "networkDifficulty": "72.45 T",
            "blockReward": "6.25 BTC",
            "energyCost": "$0.042/kWh",
            "efficiency": "94.2%",
            "nextHalving": "2028-04-20",
        },
    }


def notifications(rng: random.Random | None = None, now: datetime | None = None) -> dict[str, Any]:
    """Canned notification feed."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    stamp = int(now.timestamp() * 1000)
    items = [
        {
            "id": f"notif_{stamp}_1",
            "type": "mining_reward",
            "title": "Mining Reward Received",
            "message": f"You received ${rng.randint(100, 299)} in mining rewards",
            "timestamp": now - timedelta(hours=2),
            "read": False,
            "priority": "medium",
        },
        {
            "id": f"notif_{stamp}_2",
            "type": "performance",
            "title": "High Performance Alert",
            "message": "Your mining efficiency is 3.2% above average this week",
            "timestamp": now - timedelta(days=1),
            "read": False,
            "priority": "low",
        },
        {
            "id": f"notif_{stamp}_3",
            "type": "maintenance",
            "title": "Scheduled Maintenance",
            "message": "Mining pool maintenance scheduled for Dec 15, 2AM-4AM EST",
            "timestamp": now - timedelta(days=3),
            "read": True,
            "priority": "high",
        },
    ]
    return {
        "notifications": items,
        "unreadCount": sum(1 for n in items if not n["read"]),
        "totalCount": len(items),
    }
