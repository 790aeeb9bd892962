"""ORM models.

Sub-lists of a dashboard (pool assignments, transactions, alerts, investment
snapshots) live in child tables keyed by ``dashboard_id`` and ordered by
``position``. The dashboard row carries a version counter used for optimistic
concurrency control on bulk updates.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cmc.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Registered account (investor or admin)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)

    # Personal information
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    ssn: Mapped[str | None] = mapped_column(String(11), nullable=True)
    citizenship_status: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Contact information
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    phone_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    street_address: Mapped[str | None] = mapped_column(String(256), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Security question
    security_question: Mapped[str | None] = mapped_column(String(32), nullable=True)
    security_answer_hash: Mapped[str | None] = mapped_column(String(256), nullable=True)

    # Agreements
    terms_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    investment_agreement: Mapped[bool] = mapped_column(Boolean, default=False)
    accredited_investor: Mapped[bool] = mapped_column(Boolean, default=False)
    marketing_consent: Mapped[bool] = mapped_column(Boolean, default=False)
    agreements_accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Investment profile
    plan: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    goals: Mapped[str | None] = mapped_column(String(128), nullable=True)
    risk_tolerance: Mapped[str | None] = mapped_column(String(16), nullable=True)
    experience: Mapped[str | None] = mapped_column(String(64), nullable=True)
    initial_investment: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Account management
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user", index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_logout: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Password reset
    reset_otp_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reset_otp_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reset_otp_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


# ---------------------------------------------------------------------------
# Mining pool catalog
# ---------------------------------------------------------------------------


class MiningPool(Base):
    """Admin-managed mining pool."""

    __tablename__ = "mining_pools"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    hash_rate: Mapped[float] = mapped_column(Float, default=0)
    efficiency: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(16), default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class Dashboard(Base):
    """Per-user portfolio/mining aggregate. Exactly one per user."""

    __tablename__ = "dashboards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    portfolio_value: Mapped[float] = mapped_column(Float, default=0)
    mining_power: Mapped[float] = mapped_column(Float, default=0)
    monthly_earnings: Mapped[float] = mapped_column(Float, default=0)
    available_balance: Mapped[float] = mapped_column(Float, default=0)

    # Metrics
    growth_percentage: Mapped[float] = mapped_column(Float, default=0)
    uptime_percentage: Mapped[float] = mapped_column(Float, default=0)
    monthly_growth: Mapped[float] = mapped_column(Float, default=0)
    network_difficulty: Mapped[str] = mapped_column(String(32), default="0 T")
    block_reward: Mapped[str] = mapped_column(String(32), default="0 BTC")
    energy_cost: Mapped[str] = mapped_column(String(32), default="$0.00/kWh")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    mining_pools: Mapped[list[DashboardMiningPool]] = relationship(
        "DashboardMiningPool",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DashboardMiningPool.position",
    )
    transactions: Mapped[list[DashboardTransaction]] = relationship(
        "DashboardTransaction",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DashboardTransaction.position",
    )
    alerts: Mapped[list[PerformanceAlert]] = relationship(
        "PerformanceAlert",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PerformanceAlert.position",
    )
    investments: Mapped[list[DashboardInvestment]] = relationship(
        "DashboardInvestment",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DashboardInvestment.position",
    )

    __mapper_args__ = {"version_id_col": version}  # noqa: RUF012


class DashboardMiningPool(Base):
    """Pool assignment with a denormalized snapshot of catalog fields."""

    __tablename__ = "dashboard_mining_pools"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    dashboard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Catalog reference; intentionally not a foreign key so catalog deletes leave snapshots behind
    pool_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="active")
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    hash_rate: Mapped[float] = mapped_column(Float, default=0)
    efficiency: Mapped[float] = mapped_column(Float, default=0)


class DashboardTransaction(Base):
    """Recent transaction shown on a dashboard."""

    __tablename__ = "dashboard_transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    dashboard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False, default=_uuid)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(String(8), default="USD")
    status: Mapped[str] = mapped_column(String(16), default="completed")
    method: Mapped[str] = mapped_column(String(32), default="bank")
    description: Mapped[str] = mapped_column(Text, default="")


class PerformanceAlert(Base):
    """Alert attached to a dashboard."""

    __tablename__ = "performance_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    dashboard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(16), default="info")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    read: Mapped[bool] = mapped_column(Boolean, default=False)


class DashboardInvestment(Base):
    """Investment line as curated by an admin on the dashboard."""

    __tablename__ = "dashboard_investments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    dashboard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals: Mapped[str | None] = mapped_column(String(128), nullable=True)
    plan: Mapped[str | None] = mapped_column(String(32), nullable=True)
    risk_tolerance: Mapped[str | None] = mapped_column(String(16), nullable=True)
    initial_investment: Mapped[float] = mapped_column(Float, default=0)
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="pending")


# ---------------------------------------------------------------------------
# Investments
# ---------------------------------------------------------------------------


class Investment(Base):
    """A user's funding intent. pending -> active | rejected."""

    __tablename__ = "investments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    goals: Mapped[str] = mapped_column(String(128), nullable=False)
    plan: Mapped[str] = mapped_column(String(32), nullable=False)
    risk_tolerance: Mapped[str] = mapped_column(String(16), nullable=False)
    initial_investment: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    transaction_reference: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending", index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)
