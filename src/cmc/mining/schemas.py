"""Mining pool catalog schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from cmc.schemas import CamelModel

PoolStatus = Literal["active", "inactive"]


class MiningPoolCreate(CamelModel):
    """New catalog entry."""

    name: str = Field(..., min_length=1, max_length=128)
    location: str | None = Field(None, max_length=128)
    hash_rate: float = Field(0, ge=0)
    efficiency: float = Field(0, ge=0)
    status: PoolStatus = "active"

    @field_validator("name", "location", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v


class MiningPoolUpdate(CamelModel):
    """Partial catalog edit; omitted fields keep their value."""

    name: str | None = Field(None, min_length=1, max_length=128)
    location: str | None = Field(None, max_length=128)
    hash_rate: float | None = Field(None, ge=0)
    efficiency: float | None = Field(None, ge=0)
    status: PoolStatus | None = None

    @field_validator("name", "location", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        """Trim surrounding whitespace."""
        return v.strip() if isinstance(v, str) else v


class MiningPoolResponse(CamelModel):
    """Catalog entry."""

    id: str
    name: str
    location: str | None = None
    hash_rate: float
    efficiency: float
    status: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
