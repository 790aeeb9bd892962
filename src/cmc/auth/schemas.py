"""Request/response schemas for authentication and user profiles."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from cmc.auth.password import validate_password_strength
from cmc.schemas import CamelModel

SSN_PATTERN = re.compile(r"^\d{3}-\d{2}-\d{4}$")
PHONE_PATTERN = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")
ZIP_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")

CitizenshipStatus = Literal["us-citizen", "permanent-resident", "undocumented individual"]
PhoneType = Literal["mobile", "home", "work"]
SecurityQuestion = Literal[
    "mothers-maiden-name",
    "first-pet",
    "birth-city",
    "elementary-school",
    "favorite-book",
]


def _normalize_email(v: str) -> str:
    return v.lower().strip()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


class RegisterRequest(CamelModel):
    """Four-step onboarding form submitted in one request."""

    # Step 1: personal information
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    date_of_birth: date
    ssn: str
    citizenship_status: CitizenshipStatus

    # Step 2: contact information
    email: EmailStr
    phone_number: str
    phone_type: PhoneType
    street_address: str = Field(..., min_length=1, max_length=256)
    city: str = Field(..., min_length=1, max_length=128)
    state: str = Field(..., min_length=1, max_length=64)
    zip_code: str

    # Step 3: security
    password: str = Field(..., min_length=1, max_length=128)
    security_question: SecurityQuestion
    security_answer: str = Field(..., min_length=1, max_length=256)

    # Step 4: agreements
    terms_agreement: bool
    investment_agreement: bool
    accredited_investor: bool = False
    marketing_consent: bool = False

    @field_validator("first_name", "last_name", "street_address", "city", "state", "security_answer", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim surrounding whitespace before length checks."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)

    @field_validator("date_of_birth")
    @classmethod
    def check_age(cls, v: date) -> date:
        """Investors must be adults; reject implausible birth dates."""
        today = date.today()
        age = today.year - v.year - ((today.month, today.day) < (v.month, v.day))
        if age < 18:
            msg = "Must be at least 18 years old"
            raise ValueError(msg)
        if age > 120:
            msg = "Invalid date of birth"
            raise ValueError(msg)
        return v

    @field_validator("ssn")
    @classmethod
    def check_ssn(cls, v: str) -> str:
        """SSN must look like XXX-XX-XXXX."""
        if not SSN_PATTERN.match(v):
            msg = "SSN must be in format XXX-XX-XXXX"
            raise ValueError(msg)
        return v

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: str) -> str:
        """Phone number must look like (XXX) XXX-XXXX."""
        if not PHONE_PATTERN.match(v):
            msg = "Phone number must be in format (XXX) XXX-XXXX"
            raise ValueError(msg)
        return v

    @field_validator("zip_code")
    @classmethod
    def check_zip(cls, v: str) -> str:
        """ZIP or ZIP+4."""
        if not ZIP_PATTERN.match(v):
            msg = "Valid ZIP code is required"
            raise ValueError(msg)
        return v

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Enforce password strength rules."""
        validate_password_strength(v)
        return v

    @field_validator("terms_agreement")
    @classmethod
    def check_terms(cls, v: bool) -> bool:
        """Terms must be accepted."""
        if v is not True:
            msg = "Terms agreement is required"
            raise ValueError(msg)
        return v

    @field_validator("investment_agreement")
    @classmethod
    def check_investment_agreement(cls, v: bool) -> bool:
        """Investment agreement must be accepted."""
        if v is not True:
            msg = "Investment agreement is required"
            raise ValueError(msg)
        return v


class LoginRequest(CamelModel):
    """Login with email + password."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class ForgotPasswordRequest(CamelModel):
    """Request a password reset code."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)


class ResetPasswordRequest(CamelModel):
    """Reset password with a one-time code."""

    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$")
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v: str) -> str:
        """Enforce password strength rules."""
        validate_password_strength(v)
        return v


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class AddressSchema(CamelModel):
    """Postal address."""

    street_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None


class InvestmentProfileSchema(CamelModel):
    """Self-declared investment profile."""

    plan: str | None = None
    goals: str | None = None
    risk_tolerance: str | None = None
    experience: str | None = None
    initial_investment: float | None = Field(None, ge=0)


class AgreementsSchema(CamelModel):
    """Consent flags captured at registration."""

    terms_accepted: bool = False
    investment_agreement: bool = False
    accredited_investor: bool = False
    marketing_consent: bool = False
    accepted_at: datetime | None = None


class UserResponse(CamelModel):
    """Sanitized user profile: never carries password, SSN or security answer."""

    id: str
    email: str
    first_name: str
    last_name: str
    full_name: str
    date_of_birth: date | None = None
    citizenship_status: str | None = None
    phone_number: str | None = None
    phone_type: str | None = None
    address: AddressSchema
    agreements: AgreementsSchema
    investment_profile: InvestmentProfileSchema
    role: str
    is_active: bool
    is_verified: bool
    last_login: datetime | None = None
    last_logout: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthPayload(CamelModel):
    """User plus session token, returned by register and login."""

    user: UserResponse
    token: str


# ---------------------------------------------------------------------------
# Profile edits
# ---------------------------------------------------------------------------


class ProfileUpdateRequest(CamelModel):
    """Whitelisted profile fields. Nested objects are shallow-merged onto stored values."""

    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    phone_number: str | None = None
    phone_type: PhoneType | None = None
    address: AddressSchema | None = None
    investment_profile: InvestmentProfileSchema | None = None

    @field_validator("phone_number")
    @classmethod
    def check_phone(cls, v: str | None) -> str | None:
        """Phone number must look like (XXX) XXX-XXXX."""
        if v is not None and not PHONE_PATTERN.match(v):
            msg = "Phone number must be in format (XXX) XXX-XXXX"
            raise ValueError(msg)
        return v
