"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cmc.auth.dependencies import get_current_user
from cmc.auth.jwt import create_access_token
from cmc.auth.schemas import (
    AuthPayload,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from cmc.auth.service import (
    authenticate_user,
    create_reset_otp,
    get_user_by_email,
    record_logout,
    register_user,
    reset_password_with_otp,
)
from cmc.config import get_settings
from cmc.database import get_session
from cmc.db.models import User
from cmc.email.service import EmailService, get_email_service
from cmc.errors import ConflictError
from cmc.redis_client import get_redis
from cmc.schemas import envelope
from cmc.users.service import user_response

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a reset code has been sent."


def _auth_payload(user: User) -> AuthPayload:
    return AuthPayload(user=user_response(user), token=create_access_token(user.id, role=user.role))


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    """Create an account and its empty dashboard."""
    try:
        user = await register_user(db, body)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    try:
        await email_service.send_template(
            to=user.email,
            template_name="welcome",
            context={"first_name": user.first_name},
        )
    except Exception:
        logger.exception("welcome_email_failed", user_id=user.id)

    return envelope(_auth_payload(user), message="User registered successfully")


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_redis),
) -> dict[str, Any]:
    """Login with email + password."""
    try:
        user = await authenticate_user(db, redis, body.email, body.password)
    except (ValueError, PermissionError) as e:
        # Bad credentials, deactivated accounts and lockouts all refuse the session
        raise HTTPException(status_code=401, detail=str(e)) from e
    await db.commit()
    logger.info("user_logged_in", user_id=user.id)
    return envelope(_auth_payload(user), message="Login successful")


@router.post("/logout")
async def logout(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Record the logout time. The token itself stays valid until it expires."""
    await record_logout(db, user)
    await db.commit()
    return envelope(message="Logout successful")


@router.get("/profile")
async def profile(
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Sanitized profile of the signed-in user."""
    return envelope({"user": user_response(user)})


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    """Email a one-time reset code. The response never reveals whether the account exists."""
    user = await get_user_by_email(db, body.email)
    if user is None or not user.is_active:
        logger.info("forgot_password_unknown_email")
        return envelope(message=FORGOT_PASSWORD_MESSAGE)

    otp = await create_reset_otp(db, user)
    await db.commit()

    settings = get_settings()
    try:
        await email_service.send_template(
            to=user.email,
            template_name="password_reset_otp",
            context={
                "first_name": user.first_name,
                "otp": otp,
                "expires_minutes": settings.reset_otp_ttl_minutes,
            },
        )
    except Exception:
        logger.exception("reset_otp_email_failed", user_id=user.id)

    return envelope(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
) -> dict[str, Any]:
    """Consume a reset code and set a new password."""
    try:
        user = await reset_password_with_otp(db, body.email, body.otp, body.password)
    except ValueError as e:
        # Keep the failed-attempt count
        await db.commit()
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    settings = get_settings()
    try:
        await email_service.send_template(
            to=user.email,
            template_name="password_reset_confirmation",
            context={
                "first_name": user.first_name,
                "reset_at": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
                "support_email": settings.support_email,
            },
        )
    except Exception:
        logger.exception("reset_confirmation_email_failed", user_id=user.id)

    return envelope(message="Password reset successful")
