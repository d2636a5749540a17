"""Exam schedules. arranged_count is maintained by exam registrations only."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.dates import month_bounds
from drivingschool.core.enums import ExamResult
from drivingschool.core.exceptions import ConflictError, NotFoundError, ValidationError
from drivingschool.core.models import ExamRegistration, ExamSchedule, ExamVenue
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import ExamScheduleCreate, ExamScheduleResponse, ExamScheduleUpdate, PassRateItem


def _schedule_to_response(es: ExamSchedule, venue: Optional[ExamVenue]) -> ExamScheduleResponse:
    return ExamScheduleResponse(
        id=es.id,
        exam_date=es.exam_date,
        exam_type=es.exam_type,
        venue_id=es.venue_id,
        venue_name=venue.name if venue else None,
        venue_address=venue.address if venue else None,
        capacity=es.capacity,
        arranged_count=es.arranged_count,
        remaining=max(es.capacity - es.arranged_count, 0),
        person_in_charge=es.person_in_charge,
        notes=es.notes,
        created_at=es.created_at,
    )


async def _active_venue(db: AsyncSession, venue_id: int) -> ExamVenue:
    venue = await db.get(ExamVenue, venue_id)
    if not venue or not venue.is_active:
        raise ValidationError("考试场地不存在或未启用")
    return venue


async def _get_or_404(db: AsyncSession, schedule_id: int) -> ExamSchedule:
    es = await db.get(ExamSchedule, schedule_id)
    if not es:
        raise NotFoundError("考试安排不存在")
    return es


async def list_schedules(
    db: AsyncSession,
    start_date: Optional[date],
    end_date: Optional[date],
    exam_type: Optional[str],
    venue_id: Optional[int],
    limit: int,
    offset: int,
) -> ListData[ExamScheduleResponse]:
    stmt = select(ExamSchedule, ExamVenue).outerjoin(ExamVenue, ExamSchedule.venue_id == ExamVenue.id)
    if start_date:
        stmt = stmt.where(ExamSchedule.exam_date >= start_date)
    if end_date:
        stmt = stmt.where(ExamSchedule.exam_date <= end_date)
    if exam_type:
        stmt = stmt.where(ExamSchedule.exam_type == exam_type)
    if venue_id:
        stmt = stmt.where(ExamSchedule.venue_id == venue_id)
    stmt = stmt.order_by(ExamSchedule.exam_date.desc(), ExamSchedule.exam_type, ExamSchedule.id.desc())

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(list=[_schedule_to_response(es, v) for es, v in rows], pagination=pagination)


async def list_monthly_schedules(db: AsyncSession, year: int, month: int) -> List[ExamScheduleResponse]:
    """Calendar view: every schedule of the month."""
    try:
        start, end = month_bounds(year, month)
    except ValueError as e:
        raise ValidationError("月份无效") from e
    result = await db.execute(
        select(ExamSchedule, ExamVenue)
        .outerjoin(ExamVenue, ExamSchedule.venue_id == ExamVenue.id)
        .where(ExamSchedule.exam_date >= start, ExamSchedule.exam_date < end)
        .order_by(ExamSchedule.exam_date, ExamSchedule.exam_type)
    )
    return [_schedule_to_response(es, v) for es, v in result.all()]


async def get_schedule(db: AsyncSession, schedule_id: int) -> ExamScheduleResponse:
    es = await _get_or_404(db, schedule_id)
    return _schedule_to_response(es, await db.get(ExamVenue, es.venue_id))


async def create_schedule(db: AsyncSession, payload: ExamScheduleCreate) -> ExamScheduleResponse:
    venue = await _active_venue(db, payload.venue_id)
    es = ExamSchedule(
        exam_date=payload.exam_date,
        exam_type=payload.exam_type.value,
        venue_id=venue.id,
        capacity=payload.capacity if payload.capacity is not None else venue.capacity,
        arranged_count=0,
        person_in_charge=payload.person_in_charge,
        notes=payload.notes,
    )
    db.add(es)
    await db.commit()
    await db.refresh(es)
    return _schedule_to_response(es, venue)


async def update_schedule(
    db: AsyncSession, schedule_id: int, payload: ExamScheduleUpdate
) -> ExamScheduleResponse:
    result = await db.execute(select(ExamSchedule).where(ExamSchedule.id == schedule_id).with_for_update())
    es = result.scalar_one_or_none()
    if not es:
        raise NotFoundError("考试安排不存在")

    if payload.venue_id is not None and payload.venue_id != es.venue_id:
        es.venue_id = (await _active_venue(db, payload.venue_id)).id
    if payload.capacity is not None:
        if payload.capacity < es.arranged_count:
            raise ValidationError(f"考试容量不能小于已安排人数 {es.arranged_count}")
        es.capacity = payload.capacity
    if payload.exam_date is not None:
        es.exam_date = payload.exam_date
    if payload.exam_type is not None:
        es.exam_type = payload.exam_type.value
    if "person_in_charge" in payload.model_fields_set:
        es.person_in_charge = payload.person_in_charge
    if "notes" in payload.model_fields_set:
        es.notes = payload.notes

    await db.commit()
    await db.refresh(es)
    return _schedule_to_response(es, await db.get(ExamVenue, es.venue_id))


async def delete_schedule(db: AsyncSession, schedule_id: int) -> None:
    es = await _get_or_404(db, schedule_id)
    registrations = await db.execute(
        select(func.count(ExamRegistration.id)).where(ExamRegistration.exam_schedule_id == schedule_id)
    )
    if registrations.scalar():
        raise ConflictError("该考试安排已有学员报名，无法删除")
    await db.delete(es)
    await db.commit()


async def pass_rate_statistics(
    db: AsyncSession, year: Optional[int], month: Optional[int]
) -> List[PassRateItem]:
    """Pass rate per exam type over decided results, optionally limited to a year or month."""
    passed = func.sum(case((ExamRegistration.exam_result == ExamResult.PASS.value, 1), else_=0))
    stmt = (
        select(ExamSchedule.exam_type, func.count(ExamRegistration.id), passed)
        .join(ExamSchedule, ExamRegistration.exam_schedule_id == ExamSchedule.id)
        .where(ExamRegistration.exam_result.in_([ExamResult.PASS.value, ExamResult.FAIL.value]))
        .group_by(ExamSchedule.exam_type)
        .order_by(ExamSchedule.exam_type)
    )
    if year and month:
        try:
            start, end = month_bounds(year, month)
        except ValueError as e:
            raise ValidationError("月份无效") from e
        stmt = stmt.where(ExamSchedule.exam_date >= start, ExamSchedule.exam_date < end)
    elif year:
        stmt = stmt.where(ExamSchedule.exam_date >= date(year, 1, 1), ExamSchedule.exam_date < date(year + 1, 1, 1))

    items = []
    for exam_type, total, pass_count in (await db.execute(stmt)).all():
        pass_count = int(pass_count or 0)
        rate = (Decimal(pass_count) * 100 / Decimal(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        items.append(PassRateItem(exam_type=exam_type, total_count=total, pass_count=pass_count, pass_rate=rate))
    return items
