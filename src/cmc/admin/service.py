"""Admin user management and platform statistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from cmc.admin.pagination import apply_page, page_info
from cmc.admin.schemas import PlatformStats
from cmc.db.models import Dashboard, User
from cmc.errors import NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.admin.schemas import PaginationInfo

logger = structlog.get_logger()

USER_NOT_FOUND = "User not found"


class ProtectedUserError(ValueError):
    """The operation is not allowed on admin accounts."""


async def get_user(db: AsyncSession, user_id: str) -> User:
    """
    Fetch any account by id.

    Raises:
        NotFoundError: If the user does not exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


async def list_users(db: AsyncSession, page: int, limit: int) -> tuple[list[User], PaginationInfo]:
    """Investor accounts (role ``user``), newest first."""
    base = select(User).where(User.role == "user")
    total = await db.scalar(select(func.count()).select_from(base.subquery()))
    result = await db.execute(apply_page(base.order_by(User.created_at.desc()), page, limit))
    return list(result.scalars().all()), page_info(page, limit, int(total or 0))


async def delete_user(db: AsyncSession, user_id: str) -> None:
    """
    Delete an investor account. Its dashboard and investments go with it.

    Raises:
        NotFoundError: If the user does not exist.
        ProtectedUserError: If the target is an admin.
    """
    user = await get_user(db, user_id)
    if user.role == "admin":
        msg = "Cannot delete admin user"
        raise ProtectedUserError(msg)
    await db.delete(user)
    await db.flush()
    logger.info("user_deleted", user_id=user_id)


async def set_user_active(db: AsyncSession, user_id: str, is_active: bool) -> User:
    """
    Activate or deactivate an account.

    Raises:
        NotFoundError: If the user does not exist.
        ProtectedUserError: If deactivating an admin.
    """
    user = await get_user(db, user_id)
    if user.role == "admin" and not is_active:
        msg = "Cannot deactivate admin user"
        raise ProtectedUserError(msg)
    user.is_active = is_active
    await db.flush()
    logger.info("user_status_changed", user_id=user_id, is_active=is_active)
    return user


async def platform_stats(db: AsyncSession) -> PlatformStats:
    """User counts and dashboard totals over investor accounts."""
    investors = User.role == "user"
    total_users = await db.scalar(select(func.count(User.id)).where(investors)) or 0
    active_users = await db.scalar(select(func.count(User.id)).where(investors, User.is_active.is_(True))) or 0

    totals = await db.execute(
        select(
            func.coalesce(func.sum(Dashboard.portfolio_value), 0),
            func.coalesce(func.sum(Dashboard.mining_power), 0),
            func.coalesce(func.sum(Dashboard.monthly_earnings), 0),
        )
        .join(User, User.id == Dashboard.user_id)
        .where(investors)
    )
    portfolio, mining_power, earnings = totals.one()

    return PlatformStats(
        total_users=total_users,
        active_users=active_users,
        inactive_users=total_users - active_users,
        total_portfolio_value=float(portfolio),
        total_mining_power=float(mining_power),
        total_monthly_earnings=float(earnings),
        average_portfolio_value=float(portfolio) / total_users if total_users else 0.0,
    )
