"""Admin API schemas."""

from __future__ import annotations

from cmc.auth.schemas import UserResponse
from cmc.dashboard.schemas import DashboardResponse, PoolAssignmentResponse
from cmc.schemas import CamelModel


class PaginationInfo(CamelModel):
    """Page position for the user listing."""

    current_page: int
    total_pages: int
    total_users: int
    has_next: bool
    has_prev: bool


class UserListResponse(CamelModel):
    """One page of investor accounts."""

    users: list[UserResponse]
    pagination: PaginationInfo


class UserDetailResponse(CamelModel):
    """Account plus its dashboard."""

    user: UserResponse
    dashboard: DashboardResponse | None = None


class UserStatusUpdate(CamelModel):
    """Activate or deactivate an account."""

    is_active: bool


class PlatformStats(CamelModel):
    """Totals across all investor accounts."""

    total_users: int
    active_users: int
    inactive_users: int
    total_portfolio_value: float
    total_mining_power: float
    total_monthly_earnings: float
    average_portfolio_value: float


class RefreshPoolsResponse(CamelModel):
    """Dashboard after a snapshot refresh, plus pools no longer in the catalog."""

    dashboard: DashboardResponse
    missing_pool_ids: list[str]


class PoolListResponse(CamelModel):
    """Remaining pool entries after a removal."""

    mining_pools: list[PoolAssignmentResponse]
