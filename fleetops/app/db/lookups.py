"""
Point lookups shared by the registry and lifecycle services.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.domain.errors import NotFoundError


async def get_or_raise(db: AsyncSession, model, row_id: int, resource: str, lock: bool = False):
    """
    Load one row by id, raising NotFoundError if it does not exist.

    With `lock=True` the row is read with SELECT ... FOR UPDATE (ignored by
    SQLite). Rows are always re-read from the store, never served from the
    session's identity map.
    """
    query = select(model).where(model.id == row_id).execution_options(populate_existing=True)
    if lock:
        query = query.with_for_update()
    obj = (await db.execute(query)).scalar_one_or_none()
    if obj is None:
        raise NotFoundError(resource, row_id)
    return obj


async def exists(db: AsyncSession, model, row_id: int) -> bool:
    result = await db.execute(select(model.id).where(model.id == row_id))
    return result.scalar_one_or_none() is not None
