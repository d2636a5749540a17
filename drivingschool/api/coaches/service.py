import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import CoachStatus
from drivingschool.core.exceptions import ConflictError, NotFoundError, ValidationError
from drivingschool.core.id_card import validate_id_card
from drivingschool.core.models import Coach, CoachMonthlySalary
from drivingschool.core.query import apply_sort, paginate
from drivingschool.core.schemas import ListData

from .schemas import CoachCreate, CoachResponse, CoachUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": Coach.id,
    "name": Coach.name,
    "employment_date": Coach.employment_date,
    "created_at": Coach.created_at,
}

_REQUIRED_FIELDS = ("name", "phone", "gender", "status")


def _check_id_card(id_card: str) -> str:
    id_card = id_card.strip().upper()
    if not validate_id_card(id_card):
        raise ValidationError("身份证号格式不正确")
    return id_card


async def _get_or_404(db: AsyncSession, coach_id: int) -> Coach:
    coach = await db.get(Coach, coach_id)
    if not coach:
        raise NotFoundError("教练不存在")
    return coach


async def _ensure_unique_id_card(db: AsyncSession, id_card: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Coach.id).where(Coach.id_card == id_card)
    if exclude_id is not None:
        stmt = stmt.where(Coach.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError("该身份证号已存在")


async def list_coaches(
    db: AsyncSession,
    keyword: Optional[str],
    status: Optional[str],
    teaching_subjects: Optional[str],
    limit: int,
    offset: int,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListData[CoachResponse]:
    stmt = select(Coach)
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(or_(Coach.name.like(pattern), Coach.phone.like(pattern), Coach.id_card.like(pattern)))
    if status:
        stmt = stmt.where(Coach.status == status)
    if teaching_subjects:
        stmt = stmt.where(Coach.teaching_subjects.like(f"%{teaching_subjects}%"))
    stmt = apply_sort(stmt, SORT_COLUMNS, sort_by, sort_order, default="id")
    rows, pagination = await paginate(db, stmt, limit, offset)
    return ListData(list=[CoachResponse.model_validate(c) for c in rows], pagination=pagination)


async def list_active_coaches(db: AsyncSession) -> List[CoachResponse]:
    result = await db.execute(
        select(Coach).where(Coach.status == CoachStatus.ACTIVE.value).order_by(Coach.name)
    )
    return [CoachResponse.model_validate(c) for c in result.scalars().all()]


async def get_coach(db: AsyncSession, coach_id: int) -> CoachResponse:
    return CoachResponse.model_validate(await _get_or_404(db, coach_id))


async def create_coach(db: AsyncSession, payload: CoachCreate) -> CoachResponse:
    id_card = _check_id_card(payload.id_card)
    await _ensure_unique_id_card(db, id_card)
    coach = Coach(
        name=payload.name.strip(),
        id_card=id_card,
        phone=payload.phone.strip(),
        gender=payload.gender,
        license_type=payload.license_type,
        teaching_certificate=payload.teaching_certificate,
        teaching_subjects=payload.teaching_subjects,
        employment_date=payload.employment_date,
        status=payload.status.value,
        remarks=payload.remarks,
    )
    db.add(coach)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该身份证号已存在") from e
    await db.refresh(coach)
    logger.info("Coach %s created", coach.id)
    return CoachResponse.model_validate(coach)


async def update_coach(db: AsyncSession, coach_id: int, payload: CoachUpdate) -> CoachResponse:
    coach = await _get_or_404(db, coach_id)
    data = payload.model_dump(exclude_unset=True)

    id_card = data.pop("id_card", None)
    if id_card is not None:
        id_card = _check_id_card(id_card)
        await _ensure_unique_id_card(db, id_card, exclude_id=coach.id)
        coach.id_card = id_card

    for field, value in data.items():
        if field in _REQUIRED_FIELDS and value is None:
            continue
        if isinstance(value, CoachStatus):
            value = value.value
        setattr(coach, field, value)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该身份证号已存在") from e
    await db.refresh(coach)
    return CoachResponse.model_validate(coach)


async def delete_coach(db: AsyncSession, coach_id: int) -> None:
    """Delete a coach. Coaches with payroll records are kept; set them to 离职 instead."""
    coach = await _get_or_404(db, coach_id)
    salaries = await db.execute(
        select(func.count(CoachMonthlySalary.id)).where(CoachMonthlySalary.coach_id == coach_id)
    )
    if salaries.scalar():
        raise ConflictError("该教练已有工资记录，无法删除")
    await db.delete(coach)
    await db.commit()
    logger.info("Coach %s deleted", coach_id)
