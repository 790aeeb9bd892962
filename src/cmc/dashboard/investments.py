"""Investment records: owner CRUD and the admin status transition."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from cmc.db.models import Investment
from cmc.errors import InvalidTransitionError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.dashboard.schemas import InvestmentCreateRequest, InvestmentUpdateRequest

logger = structlog.get_logger()

INVESTMENT_NOT_FOUND = "Investment not found"

# pending is the only non-terminal state
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"active", "rejected"}),
    "active": frozenset(),
    "rejected": frozenset(),
}


async def create_investment(db: AsyncSession, user_id: str, body: InvestmentCreateRequest) -> Investment:
    """Record a new funding intent in ``pending`` state."""
    investment = Investment(
        user_id=user_id,
        goals=body.goals,
        plan=body.plan,
        risk_tolerance=body.risk_tolerance,
        initial_investment=body.initial_investment,
        payment_method=body.payment_method,
        transaction_reference=body.transaction_reference,
        status="pending",
    )
    db.add(investment)
    await db.flush()
    logger.info("investment_created", user_id=user_id, investment_id=investment.id)
    return investment


async def list_investments(db: AsyncSession, user_id: str) -> list[Investment]:
    """A user's investments, newest first."""
    result = await db.execute(
        select(Investment).where(Investment.user_id == user_id).order_by(Investment.created_at.desc())
    )
    return list(result.scalars().all())


async def get_investment(db: AsyncSession, user_id: str, investment_id: str) -> Investment:
    """
    Fetch one of the user's investments.

    Raises:
        NotFoundError: If it does not exist or belongs to someone else.
    """
    result = await db.execute(
        select(Investment).where(Investment.id == investment_id, Investment.user_id == user_id)
    )
    investment = result.scalar_one_or_none()
    if investment is None:
        raise NotFoundError(INVESTMENT_NOT_FOUND)
    return investment


def _require_pending(investment: Investment) -> None:
    if investment.status != "pending":
        msg = f"Investment is {investment.status} and can no longer be changed"
        raise InvalidTransitionError(msg)


async def update_investment(
    db: AsyncSession, user_id: str, investment_id: str, body: InvestmentUpdateRequest
) -> Investment:
    """Edit a pending investment. Only provided fields change."""
    investment = await get_investment(db, user_id, investment_id)
    _require_pending(investment)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(investment, field, value)
    await db.flush()
    logger.info("investment_updated", user_id=user_id, investment_id=investment.id)
    return investment


async def delete_investment(db: AsyncSession, user_id: str, investment_id: str) -> None:
    """Withdraw a pending investment."""
    investment = await get_investment(db, user_id, investment_id)
    _require_pending(investment)
    await db.delete(investment)
    await db.flush()
    logger.info("investment_deleted", user_id=user_id, investment_id=investment_id)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


async def list_all_investments(db: AsyncSession, status: str | None = None) -> list[Investment]:
    """Every investment, newest first, optionally filtered by status."""
    query = select(Investment).order_by(Investment.created_at.desc())
    if status is not None:
        query = query.where(Investment.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def set_investment_status(db: AsyncSession, investment_id: str, status: str) -> Investment:
    """
    Move an investment along ``pending -> active | rejected``.

    Raises:
        NotFoundError: If the investment does not exist.
        InvalidTransitionError: If the move is not allowed from the current state.
    """
    result = await db.execute(select(Investment).where(Investment.id == investment_id))
    investment = result.scalar_one_or_none()
    if investment is None:
        raise NotFoundError(INVESTMENT_NOT_FOUND)

    if status not in ALLOWED_TRANSITIONS.get(investment.status, frozenset()):
        msg = f"Cannot change investment status from {investment.status} to {status}"
        raise InvalidTransitionError(msg)

    previous = investment.status
    investment.status = status
    await db.flush()
    logger.info("investment_status_changed", investment_id=investment.id, previous=previous, status=status)
    return investment
