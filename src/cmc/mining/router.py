"""Mining pool catalog router (admin only)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from cmc.auth.dependencies import get_current_admin
from cmc.database import get_session
from cmc.db.models import User
from cmc.errors import ConflictError, NotFoundError
from cmc.mining import service
from cmc.mining.schemas import MiningPoolCreate, MiningPoolResponse, MiningPoolUpdate
from cmc.schemas import envelope

router = APIRouter(prefix="/api/admin/mining-pools", tags=["Mining Pools"])


@router.post("", status_code=201)
async def create_mining_pool(
    body: MiningPoolCreate,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Add a pool to the catalog."""
    try:
        pool = await service.create_pool(db, body)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(MiningPoolResponse.model_validate(pool), message="Mining pool created successfully")


@router.get("")
async def list_mining_pools(
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Entire catalog, newest first."""
    pools = await service.list_pools(db)
    return envelope([MiningPoolResponse.model_validate(p) for p in pools])


@router.put("/{pool_id}")
async def update_mining_pool(
    pool_id: str,
    body: MiningPoolUpdate,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Merge provided fields onto a pool."""
    try:
        pool = await service.update_pool(db, pool_id, body)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()
    return envelope(MiningPoolResponse.model_validate(pool), message="Mining pool updated successfully")


@router.delete("/{pool_id}")
async def delete_mining_pool(
    pool_id: str,
    admin: User = Depends(get_current_admin),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Remove a pool from the catalog."""
    try:
        await service.delete_pool(db, pool_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    await db.commit()
    return envelope(message="Mining pool deleted successfully")
