"""Investor dashboard router: all /api/dashboard/* endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cmc.auth.dependencies import get_current_user
from cmc.auth.schemas import ProfileUpdateRequest
from cmc.dashboard import analytics, investments, service
from cmc.dashboard.schemas import (
    AlertResponse,
    InvestmentCreateRequest,
    InvestmentResponse,
    InvestmentUpdateRequest,
)
from cmc.database import get_session
from cmc.db.models import User
from cmc.errors import InvalidTransitionError, NotFoundError
from cmc.schemas import envelope
from cmc.users.service import update_profile, user_response

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


# ---------------------------------------------------------------------------
# Overview and profile
# ---------------------------------------------------------------------------


@router.get("/overview")
async def overview(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Aggregated dashboard for the signed-in user."""
    try:
        data = await service.get_overview(db, user)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope(data)


@router.put("/edit-profile")
async def edit_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Update whitelisted profile fields."""
    await update_profile(db, user, body)
    await db.commit()
    return envelope(user_response(user), message="Profile updated successfully")


# ---------------------------------------------------------------------------
# Simulated analytics
# ---------------------------------------------------------------------------


@router.get("/portfolio-performance")
async def portfolio_performance(
    period: str = Query(analytics.DEFAULT_PERIOD),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Daily portfolio value series for 30D, 90D or 1Y."""
    try:
        dashboard = await service.get_dashboard(db, user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    data = analytics.portfolio_performance(
        user.initial_investment or 0,
        [pool.hash_rate for pool in dashboard.mining_pools],
        period=period,
    )
    return envelope(data)


@router.get("/mining-operations")
async def mining_operations(
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Per-site operations snapshot."""
    return envelope(analytics.mining_operations(user.initial_investment or 0))


@router.get("/notifications")
async def notifications(
    user: User = Depends(get_current_user),  # noqa: ARG001
) -> dict[str, Any]:
    """Notification feed."""
    return envelope(analytics.notifications())


# ---------------------------------------------------------------------------
# Performance alerts
# ---------------------------------------------------------------------------


@router.get("/performance-alerts")
async def list_performance_alerts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """The signed-in user's alerts."""
    try:
        alerts = await service.list_alerts(db, user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope([AlertResponse.model_validate(a) for a in alerts])


@router.patch("/performance-alerts/{alert_id}/mark-read")
async def mark_alert_read(
    alert_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Flag one alert as read."""
    try:
        alert = await service.mark_alert_read(db, user.id, alert_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return envelope(AlertResponse.model_validate(alert), message="Alert marked as read")


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


@router.get("/investments")
async def list_investments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """The signed-in user's investments, newest first."""
    items = await investments.list_investments(db, user.id)
    return envelope([InvestmentResponse.model_validate(i) for i in items])


@router.post("/investments", status_code=201)
async def create_investment(
    body: InvestmentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Submit a new investment for review."""
    investment = await investments.create_investment(db, user.id, body)
    await db.commit()
    return envelope(InvestmentResponse.model_validate(investment), message="Investment created successfully")


@router.get("/investments/{investment_id}")
async def get_investment(
    investment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """One of the signed-in user's investments."""
    try:
        investment = await investments.get_investment(db, user.id, investment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return envelope(InvestmentResponse.model_validate(investment))


@router.put("/investments/{investment_id}")
async def update_investment(
    investment_id: str,
    body: InvestmentUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Edit a pending investment."""
    try:
        investment = await investments.update_investment(db, user.id, investment_id, body)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(InvestmentResponse.model_validate(investment), message="Investment updated successfully")


@router.delete("/investments/{investment_id}")
async def delete_investment(
    investment_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Withdraw a pending investment."""
    try:
        await investments.delete_investment(db, user.id, investment_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except InvalidTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(message="Investment deleted successfully")
