"""
Authentication business logic.

Handles registration, login with optional lockout, one-time reset codes and
admin bootstrap.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from cmc.auth.password import (
    check_needs_rehash,
    hash_password,
    hash_security_answer,
    verify_password,
)
from cmc.config import get_settings
from cmc.dashboard.service import create_dashboard
from cmc.db.models import User
from cmc.errors import ConflictError

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.auth.schemas import RegisterRequest

logger = structlog.get_logger()

DUPLICATE_EMAIL_MESSAGE = "User already exists with this email"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_OTP_MESSAGE = "Invalid or expired OTP."


class InactiveAccountError(PermissionError):
    """The account exists and the password matched, but it is deactivated."""


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps read back from backends without tz support."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower().strip()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


async def register_user(db: AsyncSession, body: RegisterRequest) -> User:
    """
    Create a user and its zero-valued dashboard.

    Raises:
        ConflictError: If the email is already registered (any letter case).
    """
    if await get_user_by_email(db, body.email) is not None:
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

    now = datetime.now(timezone.utc)
    user = User(
        email=body.email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        date_of_birth=body.date_of_birth,
        ssn=body.ssn,
        citizenship_status=body.citizenship_status,
        phone_number=body.phone_number,
        phone_type=body.phone_type,
        street_address=body.street_address,
        city=body.city,
        state=body.state,
        zip_code=body.zip_code,
        security_question=body.security_question,
        security_answer_hash=hash_security_answer(body.security_answer),
        terms_accepted=body.terms_agreement,
        investment_agreement=body.investment_agreement,
        accredited_investor=body.accredited_investor,
        marketing_consent=body.marketing_consent,
        agreements_accepted_at=now,
        role="user",
        is_active=True,
        is_verified=False,
        created_at=now,
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race against a concurrent registration for the same email
        await db.rollback()
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from e

    await create_dashboard(db, user.id)
    logger.info("user_registered", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


async def authenticate_user(
    db: AsyncSession,
    redis: Redis | None,
    email: str,
    password: str,
) -> User:
    """
    Verify email + password and stamp ``last_login``.

    The password is checked before the account state so a deactivated account
    is only revealed to someone who knows its password.

    Raises:
        ValueError: Unknown email or wrong password (one message for both).
        InactiveAccountError: If the account is deactivated.
        PermissionError: If too many recent failures locked this email address.
    """
    throttle = LoginThrottle(redis)
    if await throttle.is_locked(email):
        msg = "Account temporarily locked. Try again later."
        raise PermissionError(msg)

    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        await throttle.record_failure(email)
        logger.info("login_failed", user_id=user.id if user else None)
        raise ValueError(INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active:
        msg = "Account is deactivated. Please contact support."
        raise InactiveAccountError(msg)

    await throttle.reset(email)
    user.last_login = datetime.now(timezone.utc)
    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)

    await db.flush()
    return user


async def record_logout(db: AsyncSession, user: User) -> None:
    """Stamp the logout time. Issued tokens stay valid until they expire."""
    user.last_logout = datetime.now(timezone.utc)
    await db.flush()


# ---------------------------------------------------------------------------
# Account lockout
# ---------------------------------------------------------------------------


class LoginThrottle:
    """
    Failed-login counter per normalized email address, kept in Redis.

    Unknown addresses are counted like registered ones so a lockout says
    nothing about whether an account exists. The window opens at the first
    failure and lasts ``account_lockout_duration_minutes``. Without Redis
    nothing is counted.
    """

    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis
        settings = get_settings()
        self.threshold = settings.account_lockout_threshold
        self.window_seconds = settings.account_lockout_duration_minutes * 60

    @staticmethod
    def _key(email: str) -> str:
        digest = hashlib.sha256(email.strip().lower().encode()).hexdigest()
        return f"login_failures:{digest}"

    async def is_locked(self, email: str) -> bool:
        if self._redis is None:
            return False
        failures = await self._redis.get(self._key(email))
        return failures is not None and int(failures) >= self.threshold

    async def record_failure(self, email: str) -> None:
        if self._redis is None:
            return
        key = self._key(email)
        if await self._redis.incr(key) == 1:
            await self._redis.expire(key, self.window_seconds)

    async def reset(self, email: str) -> None:
        if self._redis is not None:
            await self._redis.delete(self._key(email))


# ---------------------------------------------------------------------------
# One-time reset codes
# ---------------------------------------------------------------------------


def generate_otp() -> str:
    """Six random digits, zero-padded."""
    return f"{secrets.randbelow(1_000_000):06d}"


def _hash_otp(otp: str) -> str:
    return hashlib.sha256(otp.encode()).hexdigest()


def _clear_otp(user: User) -> None:
    user.reset_otp_hash = None
    user.reset_otp_expires_at = None
    user.reset_otp_attempts = 0


async def create_reset_otp(db: AsyncSession, user: User) -> str:
    """
    Issue a reset code for ``user``, replacing any previous one.

    Returns the raw code for out-of-band delivery; only its hash is stored.
    """
    settings = get_settings()
    otp = generate_otp()
    user.reset_otp_hash = _hash_otp(otp)
    user.reset_otp_expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.reset_otp_ttl_minutes)
    user.reset_otp_attempts = 0
    await db.flush()
    logger.info("reset_otp_issued", user_id=user.id)
    return otp


async def reset_password_with_otp(db: AsyncSession, email: str, otp: str, new_password: str) -> User:
    """
    Consume a reset code and set a new password.

    A wrong code counts against the issued one; after
    ``reset_otp_max_attempts`` misses the code is discarded. The counter is
    flushed before raising, so callers must commit on failure too.

    Raises:
        ValueError: If the code is wrong, expired, already used, or the email is unknown.
    """
    user = await get_user_by_email(db, email)
    if user is None or user.reset_otp_hash is None or user.reset_otp_expires_at is None:
        raise ValueError(INVALID_OTP_MESSAGE)
    if as_utc(user.reset_otp_expires_at) <= datetime.now(timezone.utc):
        raise ValueError(INVALID_OTP_MESSAGE)
    if not hmac.compare_digest(user.reset_otp_hash, _hash_otp(otp)):
        user.reset_otp_attempts = (user.reset_otp_attempts or 0) + 1
        if user.reset_otp_attempts >= get_settings().reset_otp_max_attempts:
            _clear_otp(user)
            logger.warning("reset_otp_exhausted", user_id=user.id)
        await db.flush()
        raise ValueError(INVALID_OTP_MESSAGE)

    user.password_hash = hash_password(new_password)
    _clear_otp(user)
    await db.flush()
    logger.info("password_reset_complete", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------


async def ensure_admin_user(db: AsyncSession, email: str, password: str) -> User:
    """Create the admin account (with its dashboard) unless it already exists."""
    existing = await get_user_by_email(db, email)
    if existing is not None:
        return existing

    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password),
        first_name="Admin",
        last_name="User",
        role="admin",
        is_active=True,
        is_verified=True,
        terms_accepted=True,
        investment_agreement=True,
        agreements_accepted_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.flush()
    await create_dashboard(db, user.id)
    logger.info("admin_user_created", user_id=user.id)
    return user
