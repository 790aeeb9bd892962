"""Admin router: /api/admin/* user, dashboard, alert and investment management."""

from __future__ import annotations

from typing import Any, Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cmc.admin import service
from cmc.admin.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT
from cmc.admin.schemas import (
    PoolListResponse,
    RefreshPoolsResponse,
    UserDetailResponse,
    UserListResponse,
    UserStatusUpdate,
)
from cmc.auth.dependencies import get_current_admin
from cmc.dashboard import investments
from cmc.dashboard import service as dashboard_service
from cmc.dashboard.schemas import (
    AlertCreateRequest,
    AlertResponse,
    DashboardUpdateRequest,
    InvestmentResponse,
    InvestmentStatusUpdate,
)
from cmc.database import get_session
from cmc.db.models import User
from cmc.errors import ConcurrentModificationError, InvalidTransitionError, NotFoundError
from cmc.schemas import envelope
from cmc.users.service import user_response

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Stats and users
# ---------------------------------------------------------------------------


@router.get("/stats")
async def stats(
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Platform totals."""
    return envelope(await service.platform_stats(db))


@router.get("/users")
async def list_users(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Paginated investor accounts, newest first."""
    users, pagination = await service.list_users(db, page, limit)
    return envelope(UserListResponse(users=[user_response(u) for u in users], pagination=pagination))


@router.get("/users/{user_id}")
async def get_user(
    user_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Account detail with its dashboard."""
    try:
        user = await service.get_user(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    try:
        dashboard = await dashboard_service.get_dashboard(db, user_id)
    except NotFoundError:
        detail = UserDetailResponse(user=user_response(user))
    else:
        detail = UserDetailResponse(
            user=user_response(user),
            dashboard=await dashboard_service.dashboard_response(db, dashboard),
        )
    return envelope(detail)


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Delete an investor account along with its dashboard and investments."""
    try:
        await service.delete_user(db, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except service.ProtectedUserError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(message="User deleted successfully")


@router.put("/users/{user_id}/status")
async def set_user_status(
    user_id: str,
    body: UserStatusUpdate,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Activate or deactivate an account."""
    try:
        user = await service.set_user_active(db, user_id, body.is_active)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except service.ProtectedUserError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    state = "activated" if body.is_active else "deactivated"
    return envelope(user_response(user), message=f"User {state} successfully")


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/dashboard")
async def update_dashboard(
    user_id: str,
    body: DashboardUpdateRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Merge metrics, overwrite scalars and replace lists on a user's dashboard."""
    try:
        dashboard = await dashboard_service.update_dashboard(db, user_id, body)
        data = await dashboard_service.dashboard_response(db, dashboard)
        await db.commit()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConcurrentModificationError as e:
        await db.rollback()
        raise HTTPException(status_code=409, detail=str(e)) from e
    logger.info("dashboard_updated_by_admin", admin_id=admin.id, user_id=user_id)
    return envelope(data, message="Dashboard updated successfully")


@router.post("/users/{user_id}/dashboard/refresh-pools")
async def refresh_pools(
    user_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Copy current catalog values into the user's pool snapshots."""
    try:
        dashboard, missing = await dashboard_service.refresh_pool_snapshots(db, user_id)
        data = await dashboard_service.dashboard_response(db, dashboard)
        await db.commit()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConcurrentModificationError as e:
        await db.rollback()
        raise HTTPException(status_code=409, detail=str(e)) from e
    return envelope(RefreshPoolsResponse(dashboard=data, missing_pool_ids=missing))


@router.delete("/users/{user_id}/mining-pools/{pool_id}")
async def remove_user_pool(
    user_id: str,
    pool_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Remove a pool from one user's dashboard."""
    try:
        remaining = await dashboard_service.remove_pool(db, user_id, pool_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    pools = await dashboard_service.pool_views(db, remaining)
    await db.commit()
    return envelope(PoolListResponse(mining_pools=pools), message="Mining pool removed from user dashboard")


# ---------------------------------------------------------------------------
# Performance alerts
# ---------------------------------------------------------------------------


@router.post("/performance-alerts/{user_id}", status_code=201)
async def add_performance_alert(
    user_id: str,
    body: AlertCreateRequest,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Append an alert to a user's dashboard."""
    try:
        alert = await dashboard_service.add_alert(db, user_id, body.message, body.severity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return envelope(AlertResponse.model_validate(alert), message="Performance alert added successfully")


@router.delete("/performance-alerts/{user_id}/{alert_id}")
async def delete_performance_alert(
    user_id: str,
    alert_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Delete one alert from a user's dashboard."""
    try:
        await dashboard_service.delete_alert(db, user_id, alert_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return envelope(message="Performance alert deleted successfully")


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


@router.get("/investments")
async def list_investments(
    status: Literal["pending", "active", "rejected"] | None = Query(None),
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """All investments, optionally filtered by status."""
    items = await investments.list_all_investments(db, status)
    return envelope([InvestmentResponse.model_validate(i) for i in items])


@router.put("/investments/{investment_id}/status")
async def set_investment_status(
    investment_id: str,
    body: InvestmentStatusUpdate,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Approve or reject a pending investment."""
    try:
        investment = await investments.set_investment_status(db, investment_id, body.status)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(InvestmentResponse.model_validate(investment), message=f"Investment {body.status}")
