"""Dashboard Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from cmc.schemas import CamelModel

PoolStatus = Literal["active", "inactive"]
TransactionType = Literal["deposit", "withdrawal", "reinvestment"]
TransactionStatus = Literal["pending", "completed", "failed"]
AlertSeverity = Literal["info", "warning", "critical"]
InvestmentStatus = Literal["pending", "active", "rejected"]
RiskTolerance = Literal["low", "medium", "high"]


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MetricsResponse(CamelModel):
    """Headline metrics shown on the dashboard."""

    growth_percentage: float
    uptime_percentage: float
    monthly_growth: float
    network_difficulty: str
    block_reward: str
    energy_cost: str


class PoolAssignmentResponse(CamelModel):
    """A pool on a user's dashboard. ``stale`` means the catalog entry is gone."""

    id: str
    pool_id: str
    name: str
    status: str
    location: str
    hash_rate: float
    efficiency: float
    stale: bool = False


class TransactionResponse(CamelModel):
    """Recent transaction."""

    id: str
    transaction_id: str
    date: datetime
    type: str
    amount: float
    currency: str
    status: str
    method: str
    description: str


class AlertResponse(CamelModel):
    """Performance alert."""

    id: str
    message: str
    severity: str
    date: datetime
    read: bool


class DashboardInvestmentResponse(CamelModel):
    """Investment line curated on the dashboard."""

    id: str
    goals: str | None = None
    plan: str | None = None
    risk_tolerance: str | None = None
    initial_investment: float
    payment_method: str | None = None
    transaction_reference: str | None = None
    status: str


class DashboardResponse(CamelModel):
    """Stored dashboard state."""

    id: str
    user_id: str
    portfolio_value: float
    mining_power: float
    monthly_earnings: float
    available_balance: float
    metrics: MetricsResponse
    mining_pools: list[PoolAssignmentResponse]
    recent_transactions: list[TransactionResponse]
    performance_alerts: list[AlertResponse]
    investments: list[DashboardInvestmentResponse]
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserSummary(CamelModel):
    """Owner details shown in the overview header."""

    first_name: str
    last_name: str
    email: str
    plan: str | None = None
    join_date: datetime | None = None
    last_login: datetime | None = None


class OverviewResponse(DashboardResponse):
    """Dashboard joined with live catalog data and the owner summary."""

    total_invested: float
    user: UserSummary


# ---------------------------------------------------------------------------
# Admin bulk update
# ---------------------------------------------------------------------------


class MetricsUpdate(CamelModel):
    """Partial metrics; merged key-by-key onto the stored metrics."""

    growth_percentage: float | None = None
    uptime_percentage: float | None = None
    monthly_growth: float | None = None
    network_difficulty: str | None = None
    block_reward: str | None = None
    energy_cost: str | None = None


class PoolAssignmentIn(CamelModel):
    """Pool entry in a replacement list."""

    pool_id: str = Field(..., min_length=1)
    name: str | None = None
    status: PoolStatus | None = None
    location: str | None = None
    hash_rate: float | None = None
    efficiency: float | None = None


class TransactionIn(CamelModel):
    """Transaction entry in a replacement list."""

    date: datetime | None = None
    type: TransactionType
    amount: float
    currency: str | None = None
    status: TransactionStatus | None = None
    method: str | None = None
    description: str | None = None
    transaction_id: str | None = None


class AlertIn(CamelModel):
    """Alert entry in a replacement list."""

    message: str = Field(..., min_length=1)
    severity: AlertSeverity | None = None
    date: datetime | None = None
    read: bool | None = None


class DashboardInvestmentIn(CamelModel):
    """Investment entry in a replacement list."""

    goals: str | None = None
    plan: str | None = None
    risk_tolerance: str | None = None
    initial_investment: float = 0
    payment_method: str | None = None
    transaction_reference: str | None = None
    status: InvestmentStatus | None = None


class DashboardUpdateRequest(CamelModel):
    """
    Admin dashboard update. Every field is optional.

    ``metrics`` is merged; scalars overwrite; list fields replace the stored
    list entirely. ``version``, when given, must match the stored version.
    """

    metrics: MetricsUpdate | None = None
    portfolio_value: float | None = None
    mining_power: float | None = None
    monthly_earnings: float | None = None
    available_balance: float | None = None
    mining_pools: list[PoolAssignmentIn] | None = None
    recent_transactions: list[TransactionIn] | None = None
    performance_alerts: list[AlertIn] | None = None
    investments: list[DashboardInvestmentIn] | None = None
    version: int | None = None


class AlertCreateRequest(CamelModel):
    """Append one alert to a user's dashboard."""

    message: str = Field(..., min_length=1)
    severity: AlertSeverity = "info"


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


class InvestmentCreateRequest(CamelModel):
    """Four-step funding form."""

    goals: str = Field(..., min_length=1, max_length=128)
    plan: str = Field(..., min_length=1, max_length=32)
    risk_tolerance: RiskTolerance
    initial_investment: float = Field(..., ge=0)
    payment_method: str = Field(..., min_length=1, max_length=32)
    transaction_reference: str | None = Field(None, max_length=128)


class InvestmentUpdateRequest(CamelModel):
    """Edit a pending investment."""

    goals: str | None = Field(None, min_length=1, max_length=128)
    plan: str | None = Field(None, min_length=1, max_length=32)
    risk_tolerance: RiskTolerance | None = None
    initial_investment: float | None = Field(None, ge=0)
    payment_method: str | None = Field(None, min_length=1, max_length=32)
    transaction_reference: str | None = Field(None, max_length=128)


class InvestmentStatusUpdate(CamelModel):
    """Admin decision on a pending investment."""

    status: Literal["active", "rejected"]


class InvestmentResponse(CamelModel):
    """Investment record."""

    id: str
    user_id: str
    goals: str
    plan: str
    risk_tolerance: str
    initial_investment: float
    payment_method: str
    transaction_reference: str | None = None
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
