"""User profile business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from cmc.auth.schemas import (
    AddressSchema,
    AgreementsSchema,
    InvestmentProfileSchema,
    UserResponse,
)
from cmc.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.auth.schemas import ProfileUpdateRequest

logger = structlog.get_logger()

# Nested profile objects map onto flat columns of the same name.
_ADDRESS_FIELDS = ("street_address", "city", "state", "zip_code")
_INVESTMENT_PROFILE_FIELDS = ("plan", "goals", "risk_tolerance", "experience", "initial_investment")


def user_response(user: User) -> UserResponse:
    """Build a sanitized UserResponse from a User model."""
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=f"{user.first_name} {user.last_name}",
        date_of_birth=user.date_of_birth,
        citizenship_status=user.citizenship_status,
        phone_number=user.phone_number,
        phone_type=user.phone_type,
        address=AddressSchema(
            street_address=user.street_address,
            city=user.city,
            state=user.state,
            zip_code=user.zip_code,
        ),
        agreements=AgreementsSchema(
            terms_accepted=user.terms_accepted,
            investment_agreement=user.investment_agreement,
            accredited_investor=user.accredited_investor,
            marketing_consent=user.marketing_consent,
            accepted_at=user.agreements_accepted_at,
        ),
        investment_profile=InvestmentProfileSchema(
            plan=user.plan,
            goals=user.goals,
            risk_tolerance=user.risk_tolerance,
            experience=user.experience,
            initial_investment=user.initial_investment,
        ),
        role=user.role,
        is_active=user.is_active,
        is_verified=user.is_verified,
        last_login=user.last_login,
        last_logout=user.last_logout,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


async def update_profile(db: AsyncSession, user: User, body: ProfileUpdateRequest) -> User:
    """
    Apply a profile edit.

    Scalar fields overwrite when provided. ``address`` and ``investment_profile``
    are shallow-merged: keys present in the request overwrite, absent keys keep
    their stored value.
    """
    if body.first_name:
        user.first_name = body.first_name
    if body.last_name:
        user.last_name = body.last_name
    if body.phone_number:
        user.phone_number = body.phone_number
    if body.phone_type:
        user.phone_type = body.phone_type

    if body.address is not None:
        for field, value in body.address.model_dump(exclude_unset=True).items():
            if field in _ADDRESS_FIELDS:
                setattr(user, field, value)

    if body.investment_profile is not None:
        for field, value in body.investment_profile.model_dump(exclude_unset=True).items():
            if field in _INVESTMENT_PROFILE_FIELDS:
                setattr(user, field, value)

    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user
