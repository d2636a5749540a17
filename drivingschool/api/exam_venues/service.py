from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.exceptions import ConflictError, NotFoundError
from drivingschool.core.models import ExamSchedule, ExamVenue
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import ExamVenueCreate, ExamVenueResponse, ExamVenueUpdate


async def _get_or_404(db: AsyncSession, venue_id: int) -> ExamVenue:
    venue = await db.get(ExamVenue, venue_id)
    if not venue:
        raise NotFoundError("考试场地不存在")
    return venue


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(ExamVenue.id).where(ExamVenue.name == name)
    if exclude_id is not None:
        stmt = stmt.where(ExamVenue.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError("场地名称已存在")


async def list_venues(
    db: AsyncSession,
    keyword: Optional[str],
    is_active: Optional[bool],
    limit: int,
    offset: int,
) -> ListData[ExamVenueResponse]:
    stmt = select(ExamVenue)
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(or_(ExamVenue.name.like(pattern), ExamVenue.address.like(pattern)))
    if is_active is not None:
        stmt = stmt.where(ExamVenue.is_active.is_(is_active))
    stmt = stmt.order_by(ExamVenue.id.desc())
    rows, pagination = await paginate(db, stmt, limit, offset)
    return ListData(list=[ExamVenueResponse.model_validate(v) for v in rows], pagination=pagination)


async def list_active_venues(db: AsyncSession) -> List[ExamVenueResponse]:
    result = await db.execute(
        select(ExamVenue).where(ExamVenue.is_active.is_(True)).order_by(ExamVenue.name)
    )
    return [ExamVenueResponse.model_validate(v) for v in result.scalars().all()]


async def get_venue(db: AsyncSession, venue_id: int) -> ExamVenueResponse:
    return ExamVenueResponse.model_validate(await _get_or_404(db, venue_id))


async def create_venue(db: AsyncSession, payload: ExamVenueCreate) -> ExamVenueResponse:
    name = payload.name.strip()
    await _ensure_unique_name(db, name)
    venue = ExamVenue(
        name=name,
        address=payload.address,
        capacity=payload.capacity,
        is_active=payload.is_active,
    )
    db.add(venue)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("场地名称已存在") from e
    await db.refresh(venue)
    return ExamVenueResponse.model_validate(venue)


async def update_venue(db: AsyncSession, venue_id: int, payload: ExamVenueUpdate) -> ExamVenueResponse:
    venue = await _get_or_404(db, venue_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        data["name"] = data["name"].strip()
        await _ensure_unique_name(db, data["name"], exclude_id=venue.id)
    for field, value in data.items():
        if value is None and field in ("name", "capacity", "is_active"):
            continue
        setattr(venue, field, value)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("场地名称已被其他场地使用") from e
    await db.refresh(venue)
    return ExamVenueResponse.model_validate(venue)


async def delete_venue(db: AsyncSession, venue_id: int) -> None:
    venue = await _get_or_404(db, venue_id)
    schedules = await db.execute(
        select(func.count(ExamSchedule.id)).where(ExamSchedule.venue_id == venue_id)
    )
    if schedules.scalar():
        raise ConflictError("该场地已有关联的考试安排，无法删除")
    await db.delete(venue)
    await db.commit()
