"""
Transaction scope and guarded writes.

Lifecycle orchestrations run their reads and writes inside `transaction(db)`.
Status changes on shared rows go through `compare_and_set`, which only
updates the row when it is still in one of the expected statuses, so two
requests that both read AVAILABLE cannot both reserve the same vehicle.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Iterable

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.domain.errors import PreconditionFailedError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def transaction(db: AsyncSession):
    """
    Commit on success, roll back on any error and re-raise it.

    Usage:
        async with transaction(db):
            ...
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def compare_and_set(
    db: AsyncSession,
    model,
    row_id: int,
    expected: Iterable[Any],
    entity: str,
    strict: bool = True,
    **values: Any,
) -> bool:
    """
    Conditionally update one row: `UPDATE ... WHERE id = :id AND status IN (:expected)`.

    Returns True when the row was updated. With `strict` (the default) a
    miss raises PreconditionFailedError instead: another writer moved the row
    out of the expected statuses after it was read.
    """
    expected = list(expected)
    stmt = (
        update(model)
        .where(model.id == row_id, model.status.in_(expected))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount == 1:
        return True
    if strict:
        logger.warning(
            "Guarded update lost race on %s %s (expected %s)",
            entity, row_id, [getattr(s, "value", s) for s in expected],
        )
        raise PreconditionFailedError(
            f"{entity} {row_id} changed concurrently; expected status in "
            f"[{', '.join(getattr(s, 'value', str(s)) for s in expected)}]",
            {"entity": entity, "id": row_id},
        )
    return False


async def advance_odometer(db: AsyncSession, model, row_id: int, reading_km: float) -> bool:
    """
    Raise a vehicle's odometer to `reading_km` if it is not already higher.

    Returns True when the row was updated.
    """
    stmt = (
        update(model)
        .where(model.id == row_id, model.odometer_km <= reading_km)
        .values(odometer_km=reading_km)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    return result.rowcount == 1
