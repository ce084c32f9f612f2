"""
Page/limit and time-window helpers for filtered scans.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleetops.app.core.timeutils import as_utc
from fleetops.app.domain.errors import InvalidInputError


def apply_window(query, column, date_from: Optional[datetime], date_to: Optional[datetime]):
    """Bound `column` inclusively by `from`/`to`. An inverted window is InvalidInput."""
    date_from, date_to = as_utc(date_from), as_utc(date_to)
    if date_from and date_to and date_from > date_to:
        raise InvalidInputError("'from' must not be after 'to'", "from")
    if date_from:
        query = query.where(column >= date_from)
    if date_to:
        query = query.where(column <= date_to)
    return query


async def paginate(db: AsyncSession, query, page: int, limit: int) -> Tuple[List[Any], int]:
    """
    Run `query` for one page and count the full filtered result.

    Returns (items, total).
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * limit
    result = await db.execute(query.offset(offset).limit(limit))
    return list(result.scalars().all()), total


def page_meta(total: int, page: int, limit: int) -> Dict[str, int]:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
