"""Class types: price catalogue with an append-only price history."""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import ClassTypeStatus
from drivingschool.core.exceptions import ConflictError, NotFoundError
from drivingschool.core.models import ClassType, ClassTypePriceHistory, Student
from drivingschool.core.money import to_decimal
from drivingschool.core.query import apply_sort, paginate
from drivingschool.core.schemas import ListData

from .schemas import (
    ClassTypeCreate,
    ClassTypeResponse,
    ClassTypeUpdate,
    ClassTypeUpdateResponse,
    PriceHistoryList,
    PriceHistoryResponse,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": ClassType.id,
    "name": ClassType.name,
    "contract_amount": ClassType.contract_amount,
    "created_at": ClassType.created_at,
}


def _ct_to_response(ct: ClassType, student_count: int = 0) -> ClassTypeResponse:
    return ClassTypeResponse(
        id=ct.id,
        name=ct.name,
        contract_amount=to_decimal(ct.contract_amount),
        description=ct.description,
        status=ct.status,
        student_count=student_count,
        created_at=ct.created_at,
        updated_at=ct.updated_at,
    )


async def _get_or_404(db: AsyncSession, class_type_id: int) -> ClassType:
    ct = await db.get(ClassType, class_type_id)
    if not ct:
        raise NotFoundError("班型不存在")
    return ct


async def _count_students(db: AsyncSession, class_type_id: int) -> int:
    result = await db.execute(
        select(func.count(Student.id)).where(Student.class_type_id == class_type_id)
    )
    return result.scalar() or 0


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(ClassType.id).where(ClassType.name == name)
    if exclude_id is not None:
        stmt = stmt.where(ClassType.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError("班型名称已存在")


async def list_class_types(
    db: AsyncSession,
    keyword: Optional[str],
    status: Optional[str],
    limit: int,
    offset: int,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListData[ClassTypeResponse]:
    student_count = (
        select(func.count(Student.id))
        .where(Student.class_type_id == ClassType.id)
        .correlate(ClassType)
        .scalar_subquery()
    )
    stmt = select(ClassType, student_count.label("student_count"))
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(or_(ClassType.name.like(pattern), ClassType.description.like(pattern)))
    if status:
        stmt = stmt.where(ClassType.status == status)
    stmt = apply_sort(stmt, SORT_COLUMNS, sort_by, sort_order, default="id")

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(
        list=[_ct_to_response(ct, count or 0) for ct, count in rows],
        pagination=pagination,
    )


async def list_enabled_class_types(db: AsyncSession) -> List[ClassTypeResponse]:
    result = await db.execute(
        select(ClassType)
        .where(ClassType.status == ClassTypeStatus.ENABLED.value)
        .order_by(ClassType.contract_amount.asc())
    )
    return [_ct_to_response(ct) for ct in result.scalars().all()]


async def get_class_type(db: AsyncSession, class_type_id: int) -> ClassTypeResponse:
    ct = await _get_or_404(db, class_type_id)
    return _ct_to_response(ct, await _count_students(db, class_type_id))


async def create_class_type(db: AsyncSession, payload: ClassTypeCreate) -> ClassTypeResponse:
    name = payload.name.strip()
    await _ensure_unique_name(db, name)
    ct = ClassType(
        name=name,
        contract_amount=payload.contract_amount,
        description=payload.description,
        status=payload.status.value,
    )
    db.add(ct)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("班型名称已存在") from e
    await db.refresh(ct)
    logger.info("Class type %s created at %s", ct.name, ct.contract_amount)
    return _ct_to_response(ct)


async def update_class_type(
    db: AsyncSession,
    class_type_id: int,
    payload: ClassTypeUpdate,
    operator: Optional[str],
) -> ClassTypeUpdateResponse:
    """
    A price change appends the previous price to the history in the same transaction.
    Students keep the contract amount they were enrolled with.
    """
    ct = await _get_or_404(db, class_type_id)
    old_price = to_decimal(ct.contract_amount)
    new_price = payload.contract_amount if payload.contract_amount is not None else old_price

    if payload.name is not None:
        name = payload.name.strip()
        await _ensure_unique_name(db, name, exclude_id=ct.id)
        ct.name = name
    if payload.description is not None:
        ct.description = payload.description
    if payload.status is not None:
        ct.status = payload.status.value

    price_changed = new_price != old_price
    if price_changed:
        db.add(
            ClassTypePriceHistory(
                class_type_id=ct.id,
                contract_amount=old_price,
                created_by=operator or "system",
                notes=payload.price_change_notes or f"价格从 {old_price} 调整为 {new_price}",
            )
        )
        ct.contract_amount = new_price

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("班型名称已存在") from e
    await db.refresh(ct)
    if price_changed:
        logger.info("Class type %s price changed %s -> %s", ct.id, old_price, new_price)

    return ClassTypeUpdateResponse(
        class_type=_ct_to_response(ct, await _count_students(db, ct.id)),
        price_changed=price_changed,
        old_price=old_price,
        new_price=new_price,
    )


async def delete_class_type(db: AsyncSession, class_type_id: int) -> None:
    ct = await _get_or_404(db, class_type_id)
    student_count = await _count_students(db, class_type_id)
    if student_count > 0:
        raise ConflictError(f"该班型下有 {student_count} 名学员，无法删除")
    await db.delete(ct)
    await db.commit()


async def get_price_history(db: AsyncSession, class_type_id: int) -> PriceHistoryList:
    ct = await _get_or_404(db, class_type_id)
    result = await db.execute(
        select(ClassTypePriceHistory)
        .where(ClassTypePriceHistory.class_type_id == class_type_id)
        .order_by(ClassTypePriceHistory.effective_date.desc(), ClassTypePriceHistory.id.desc())
    )
    return PriceHistoryList(
        class_type_id=ct.id,
        current_price=to_decimal(ct.contract_amount),
        history=[PriceHistoryResponse.model_validate(h) for h in result.scalars().all()],
    )
