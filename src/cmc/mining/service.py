"""Mining pool catalog.

Pools are referenced by id from dashboard entries, which keep their own
snapshot of the catalog fields; deleting a pool leaves those snapshots alone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from cmc.db.models import MiningPool
from cmc.errors import ConflictError, NotFoundError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from cmc.mining.schemas import MiningPoolCreate, MiningPoolUpdate

logger = structlog.get_logger()

POOL_EXISTS_MESSAGE = "Mining pool already exists"
POOL_NOT_FOUND = "Mining pool not found"


async def _get_by_name(db: AsyncSession, name: str) -> MiningPool | None:
    result = await db.execute(select(MiningPool).where(func.lower(MiningPool.name) == name.lower()))
    return result.scalar_one_or_none()


async def get_pool(db: AsyncSession, pool_id: str) -> MiningPool:
    """
    Fetch a pool by id.

    Raises:
        NotFoundError: If no such pool exists.
    """
    result = await db.execute(select(MiningPool).where(MiningPool.id == pool_id))
    pool = result.scalar_one_or_none()
    if pool is None:
        raise NotFoundError(POOL_NOT_FOUND)
    return pool


async def create_pool(db: AsyncSession, body: MiningPoolCreate) -> MiningPool:
    """
    Add a pool to the catalog.

    Raises:
        ConflictError: If a pool with the same name (any case) exists.
    """
    if await _get_by_name(db, body.name) is not None:
        raise ConflictError(POOL_EXISTS_MESSAGE)

    pool = MiningPool(
        name=body.name,
        location=body.location,
        hash_rate=body.hash_rate,
        efficiency=body.efficiency,
        status=body.status,
    )
    db.add(pool)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(POOL_EXISTS_MESSAGE) from e
    logger.info("mining_pool_created", pool_id=pool.id, name=pool.name)
    return pool


async def list_pools(db: AsyncSession) -> list[MiningPool]:
    """Entire catalog, newest first."""
    result = await db.execute(select(MiningPool).order_by(MiningPool.created_at.desc()))
    return list(result.scalars().all())


async def update_pool(db: AsyncSession, pool_id: str, body: MiningPoolUpdate) -> MiningPool:
    """
    Merge provided fields onto a pool.

    Raises:
        NotFoundError: If the pool does not exist.
        ConflictError: If renaming onto another pool's name.
    """
    pool = await get_pool(db, pool_id)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}

    new_name = changes.get("name")
    if new_name is not None and new_name.lower() != pool.name.lower():
        other = await _get_by_name(db, new_name)
        if other is not None and other.id != pool.id:
            raise ConflictError(POOL_EXISTS_MESSAGE)

    for field, value in changes.items():
        setattr(pool, field, value)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(POOL_EXISTS_MESSAGE) from e
    logger.info("mining_pool_updated", pool_id=pool.id, fields=sorted(changes))
    return pool


async def delete_pool(db: AsyncSession, pool_id: str) -> None:
    """Remove a pool from the catalog; dashboard snapshots are left in place."""
    pool = await get_pool(db, pool_id)
    await db.delete(pool)
    await db.flush()
    logger.info("mining_pool_deleted", pool_id=pool_id)
