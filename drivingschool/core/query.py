"""List helpers: whitelisted sorting and limit/offset pagination."""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from drivingschool.core.schemas import Pagination


def apply_sort(
    stmt: Select,
    allowed: Dict[str, Any],
    sort_by: Optional[str],
    sort_order: Optional[str],
    default: str,
) -> Select:
    """Order by a whitelisted column; unknown names fall back to the default column."""
    column = allowed.get(sort_by or "", allowed[default])
    if (sort_order or "").lower() == "asc":
        return stmt.order_by(column.asc())
    return stmt.order_by(column.desc())


async def paginate(
    db: AsyncSession,
    stmt: Select,
    limit: int,
    offset: int,
    scalars: bool = True,
) -> Tuple[List[Any], Pagination]:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total_result = await db.execute(count_stmt)
    total = total_result.scalar() or 0

    result = await db.execute(stmt.offset(offset).limit(limit))
    rows = result.scalars().all() if scalars else result.all()
    return list(rows), Pagination(total=total, limit=limit, offset=offset)
