"""
Dashboard aggregation.

Reads join the dashboard with the live mining pool catalog. Admin bulk updates
merge ``metrics``, overwrite scalars and replace list fields wholesale, guarded
by the dashboard version counter. Targeted list edits (alerts, pool removal)
are single statements against child rows that also bump the version.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.orm.exc import StaleDataError

from cmc.dashboard.schemas import (
    AlertResponse,
    DashboardInvestmentResponse,
    DashboardResponse,
    MetricsResponse,
    OverviewResponse,
    PoolAssignmentResponse,
    TransactionResponse,
    UserSummary,
)
from cmc.db.models import (
    Dashboard,
    DashboardInvestment,
    DashboardMiningPool,
    DashboardTransaction,
    MiningPool,
    PerformanceAlert,
    User,
)
from cmc.errors import ConcurrentModificationError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.dashboard.schemas import DashboardUpdateRequest

logger = structlog.get_logger()

DASHBOARD_NOT_FOUND = "Dashboard not found"
ALERT_NOT_FOUND = "Performance alert not found"
POOL_NOT_IN_DASHBOARD = "Pool not found in user's dashboard"

_SCALAR_FIELDS = ("portfolio_value", "mining_power", "monthly_earnings", "available_balance")


# ---------------------------------------------------------------------------
# Creation / lookup
# ---------------------------------------------------------------------------


async def create_dashboard(db: AsyncSession, user_id: str) -> Dashboard:
    """Create the zero-valued dashboard that every account starts with."""
    dashboard = Dashboard(
        user_id=user_id,
        portfolio_value=0,
        mining_power=0,
        monthly_earnings=0,
        available_balance=0,
        growth_percentage=0,
        uptime_percentage=0,
        monthly_growth=0,
        network_difficulty="0 T",
        block_reward="0 BTC",
        energy_cost="$0.00/kWh",
        mining_pools=[],
        transactions=[],
        alerts=[],
        investments=[],
    )
    db.add(dashboard)
    await db.flush()
    return dashboard


async def get_dashboard(db: AsyncSession, user_id: str) -> Dashboard:
    """
    Load a user's dashboard with all of its lists.

    Raises:
        NotFoundError: If the user has no dashboard.
    """
    result = await db.execute(select(Dashboard).where(Dashboard.user_id == user_id))
    dashboard = result.scalar_one_or_none()
    if dashboard is None:
        raise NotFoundError(DASHBOARD_NOT_FOUND)
    return dashboard


async def _dashboard_id(db: AsyncSession, user_id: str) -> str:
    """Resolve only the dashboard id; avoids pulling the entity into the session."""
    result = await db.execute(select(Dashboard.id).where(Dashboard.user_id == user_id))
    dashboard_id = result.scalar_one_or_none()
    if dashboard_id is None:
        raise NotFoundError(DASHBOARD_NOT_FOUND)
    return dashboard_id


async def _bump_version(db: AsyncSession, dashboard_id: str) -> None:
    await db.execute(
        update(Dashboard)
        .where(Dashboard.id == dashboard_id)
        .values(version=Dashboard.version + 1, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )


async def _catalog(db: AsyncSession, pool_ids: list[str]) -> dict[str, MiningPool]:
    if not pool_ids:
        return {}
    result = await db.execute(select(MiningPool).where(MiningPool.id.in_(pool_ids)))
    return {pool.id: pool for pool in result.scalars().all()}


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------


def _pool_view(entry: DashboardMiningPool, live: MiningPool | None) -> PoolAssignmentResponse:
    """Live catalog values when the reference resolves, else the stored snapshot."""
    if live is not None:
        return PoolAssignmentResponse(
            id=entry.id,
            pool_id=entry.pool_id,
            name=live.name,
            status=live.status or "active",
            location=live.location or "",
            hash_rate=live.hash_rate or 0,
            efficiency=live.efficiency or 0,
        )
    return PoolAssignmentResponse(
        id=entry.id,
        pool_id=entry.pool_id,
        name=entry.name or "",
        status=entry.status or "active",
        location=entry.location or "",
        hash_rate=entry.hash_rate or 0,
        efficiency=entry.efficiency or 0,
        stale=True,
    )


async def pool_views(db: AsyncSession, entries: list[DashboardMiningPool]) -> list[PoolAssignmentResponse]:
    """Render pool entries the way overview and dashboard detail do."""
    catalog = await _catalog(db, [p.pool_id for p in entries])
    return [_pool_view(p, catalog.get(p.pool_id)) for p in entries]


def _dashboard_fields(dashboard: Dashboard, catalog: dict[str, MiningPool]) -> dict:
    return {
        "id": dashboard.id,
        "user_id": dashboard.user_id,
        "portfolio_value": dashboard.portfolio_value or 0,
        "mining_power": dashboard.mining_power or 0,
        "monthly_earnings": dashboard.monthly_earnings or 0,
        "available_balance": dashboard.available_balance or 0,
        "metrics": MetricsResponse(
            growth_percentage=dashboard.growth_percentage or 0,
            uptime_percentage=dashboard.uptime_percentage or 0,
            monthly_growth=dashboard.monthly_growth or 0,
            network_difficulty=dashboard.network_difficulty,
            block_reward=dashboard.block_reward,
            energy_cost=dashboard.energy_cost,
        ),
        "mining_pools": [_pool_view(p, catalog.get(p.pool_id)) for p in dashboard.mining_pools],
        "recent_transactions": [TransactionResponse.model_validate(t) for t in dashboard.transactions],
        "performance_alerts": [AlertResponse.model_validate(a) for a in dashboard.alerts],
        "investments": [DashboardInvestmentResponse.model_validate(i) for i in dashboard.investments],
        "version": dashboard.version,
        "created_at": dashboard.created_at,
        "updated_at": dashboard.updated_at,
    }


async def dashboard_response(db: AsyncSession, dashboard: Dashboard) -> DashboardResponse:
    """Serialize a dashboard, resolving pool entries against the catalog."""
    catalog = await _catalog(db, [p.pool_id for p in dashboard.mining_pools])
    return DashboardResponse(**_dashboard_fields(dashboard, catalog))


async def get_overview(db: AsyncSession, user: User) -> OverviewResponse:
    """Aggregated dashboard view for the owner."""
    dashboard = await get_dashboard(db, user.id)
    catalog = await _catalog(db, [p.pool_id for p in dashboard.mining_pools])
    return OverviewResponse(
        **_dashboard_fields(dashboard, catalog),
        total_invested=user.initial_investment or 0,
        user=UserSummary(
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            plan=user.plan,
            join_date=user.created_at,
            last_login=user.last_login,
        ),
    )


# ---------------------------------------------------------------------------
# Admin bulk update
# ---------------------------------------------------------------------------


async def update_dashboard(db: AsyncSession, user_id: str, body: DashboardUpdateRequest) -> Dashboard:
    """
    Apply an admin update to a user's dashboard.

    Raises:
        NotFoundError: If the dashboard or any referenced mining pool is missing.
        ConcurrentModificationError: If ``body.version`` is stale or another
            writer committed first.
    """
    dashboard = await get_dashboard(db, user_id)
    if body.version is not None and body.version != dashboard.version:
        msg = "Dashboard was modified by another request"
        raise ConcurrentModificationError(msg)

    if body.metrics is not None:
        for field, value in body.metrics.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(dashboard, field, value)

    for field in _SCALAR_FIELDS:
        value = getattr(body, field)
        if value is not None:
            setattr(dashboard, field, value)

    now = datetime.now(timezone.utc)

    if body.mining_pools is not None:
        catalog = await _catalog(db, [p.pool_id for p in body.mining_pools])
        for item in body.mining_pools:
            if item.pool_id not in catalog:
                msg = f"Mining pool not found: {item.pool_id}"
                raise NotFoundError(msg)
        dashboard.mining_pools = [
            DashboardMiningPool(
                position=position,
                pool_id=item.pool_id,
                name=item.name if item.name is not None else catalog[item.pool_id].name,
                status=item.status or "active",
                location=item.location if item.location is not None else catalog[item.pool_id].location,
                hash_rate=item.hash_rate or 0,
                efficiency=item.efficiency or 0,
            )
            for position, item in enumerate(body.mining_pools)
        ]

    if body.recent_transactions is not None:
        dashboard.transactions = [
            DashboardTransaction(
                position=position,
                transaction_id=item.transaction_id or str(uuid.uuid4()),
                date=item.date or now,
                type=item.type,
                amount=item.amount,
                currency=item.currency or "USD",
                status=item.status or "completed",
                method=item.method or "bank",
                description=item.description or "",
            )
            for position, item in enumerate(body.recent_transactions)
        ]

    if body.performance_alerts is not None:
        dashboard.alerts = [
            PerformanceAlert(
                position=position,
                message=item.message,
                severity=item.severity or "info",
                date=item.date or now,
                read=bool(item.read),
            )
            for position, item in enumerate(body.performance_alerts)
        ]

    if body.investments is not None:
        dashboard.investments = [
            DashboardInvestment(
                position=position,
                goals=item.goals,
                plan=item.plan,
                risk_tolerance=item.risk_tolerance,
                initial_investment=item.initial_investment,
                payment_method=item.payment_method,
                transaction_reference=item.transaction_reference,
                status=item.status or "pending",
            )
            for position, item in enumerate(body.investments)
        ]

    # Always touch a column so the versioned UPDATE runs even for list-only edits
    dashboard.updated_at = now
    try:
        await db.flush()
    except StaleDataError as e:
        msg = "Dashboard was modified by another request"
        raise ConcurrentModificationError(msg) from e

    logger.info("dashboard_updated", user_id=user_id, version=dashboard.version)
    return dashboard


async def refresh_pool_snapshots(db: AsyncSession, user_id: str) -> tuple[Dashboard, list[str]]:
    """
    Copy current catalog values into every pool entry of a user's dashboard.

    Entries whose catalog pool no longer exists are left untouched and their
    pool ids returned.
    """
    dashboard = await get_dashboard(db, user_id)
    catalog = await _catalog(db, [p.pool_id for p in dashboard.mining_pools])
    missing: list[str] = []
    for entry in dashboard.mining_pools:
        live = catalog.get(entry.pool_id)
        if live is None:
            missing.append(entry.pool_id)
            continue
        entry.name = live.name
        entry.status = live.status
        entry.location = live.location
        entry.hash_rate = live.hash_rate
        entry.efficiency = live.efficiency

    dashboard.updated_at = datetime.now(timezone.utc)
    try:
        await db.flush()
    except StaleDataError as e:
        msg = "Dashboard was modified by another request"
        raise ConcurrentModificationError(msg) from e

    logger.info("pool_snapshots_refreshed", user_id=user_id, missing=len(missing))
    return dashboard, missing


# ---------------------------------------------------------------------------
# Targeted list edits
# ---------------------------------------------------------------------------


async def remove_pool(db: AsyncSession, user_id: str, pool_id: str) -> list[DashboardMiningPool]:
    """
    Remove every entry referencing ``pool_id`` from a user's dashboard.

    Returns the remaining entries.

    Raises:
        NotFoundError: If the dashboard is missing or no entry matched.
    """
    dashboard_id = await _dashboard_id(db, user_id)
    result = await db.execute(
        delete(DashboardMiningPool).where(
            DashboardMiningPool.dashboard_id == dashboard_id,
            DashboardMiningPool.pool_id == pool_id,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError(POOL_NOT_IN_DASHBOARD)
    await _bump_version(db, dashboard_id)

    remaining = await db.execute(
        select(DashboardMiningPool)
        .where(DashboardMiningPool.dashboard_id == dashboard_id)
        .order_by(DashboardMiningPool.position)
    )
    logger.info("dashboard_pool_removed", user_id=user_id, pool_id=pool_id)
    return list(remaining.scalars().all())


async def add_alert(db: AsyncSession, user_id: str, message: str, severity: str = "info") -> PerformanceAlert:
    """Append an alert with a server-generated id and timestamp."""
    dashboard_id = await _dashboard_id(db, user_id)
    next_position = await db.execute(
        select(func.coalesce(func.max(PerformanceAlert.position) + 1, 0)).where(
            PerformanceAlert.dashboard_id == dashboard_id
        )
    )
    alert = PerformanceAlert(
        id=str(uuid.uuid4()),
        dashboard_id=dashboard_id,
        position=next_position.scalar_one(),
        message=message,
        severity=severity,
        date=datetime.now(timezone.utc),
        read=False,
    )
    db.add(alert)
    await db.flush()
    await _bump_version(db, dashboard_id)
    logger.info("performance_alert_added", user_id=user_id, alert_id=alert.id, severity=severity)
    return alert


async def delete_alert(db: AsyncSession, user_id: str, alert_id: str) -> None:
    """
    Delete one alert by id.

    Raises:
        NotFoundError: If the dashboard or the alert is missing.
    """
    dashboard_id = await _dashboard_id(db, user_id)
    result = await db.execute(
        delete(PerformanceAlert).where(
            PerformanceAlert.id == alert_id,
            PerformanceAlert.dashboard_id == dashboard_id,
        )
    )
    if result.rowcount == 0:
        raise NotFoundError(ALERT_NOT_FOUND)
    await _bump_version(db, dashboard_id)
    logger.info("performance_alert_deleted", user_id=user_id, alert_id=alert_id)


async def list_alerts(db: AsyncSession, user_id: str) -> list[PerformanceAlert]:
    """A user's alerts, in stored order."""
    dashboard_id = await _dashboard_id(db, user_id)
    result = await db.execute(
        select(PerformanceAlert)
        .where(PerformanceAlert.dashboard_id == dashboard_id)
        .order_by(PerformanceAlert.position)
    )
    return list(result.scalars().all())


async def mark_alert_read(db: AsyncSession, user_id: str, alert_id: str) -> PerformanceAlert:
    """
    Flag one of the user's alerts as read.

    Raises:
        NotFoundError: If the alert does not belong to the user's dashboard.
    """
    dashboard_id = await _dashboard_id(db, user_id)
    result = await db.execute(
        update(PerformanceAlert)
        .where(PerformanceAlert.id == alert_id, PerformanceAlert.dashboard_id == dashboard_id)
        .values(read=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(ALERT_NOT_FOUND)
    await _bump_version(db, dashboard_id)

    alert = await db.execute(
        select(PerformanceAlert)
        .where(PerformanceAlert.id == alert_id)
        .execution_options(populate_existing=True)
    )
    return alert.scalar_one()
