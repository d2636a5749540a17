"""Students: enrollment records and the contract-amount snapshot."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.schemas import CurrentUser
from drivingschool.core.enums import (
    DIRECTLY_SETTABLE_ENROLLMENT,
    PRE_ENROLLMENT,
    EnrollmentStatus,
    PaymentStatus,
)
from drivingschool.core.exceptions import ConflictError, NotFoundError, ValidationError
from drivingschool.core.id_card import extract_birth_info, validate_id_card
from drivingschool.core.models import ClassType, ExamRegistration, Student
from drivingschool.core.money import to_decimal
from drivingschool.core.query import apply_sort, paginate
from drivingschool.core.schemas import ListData

from .schemas import StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "id": Student.id,
    "name": Student.name,
    "enrollment_date": Student.enrollment_date,
    "contract_amount": Student.contract_amount,
    "debt_amount": Student.debt_amount,
    "created_at": Student.created_at,
}

_REQUIRED_FIELDS = ("name", "phone", "gender", "license_type")


def _student_to_response(s: Student, class_type_name: Optional[str] = None) -> StudentResponse:
    contract = to_decimal(s.contract_amount)
    discount = to_decimal(s.discount_amount)
    return StudentResponse(
        id=s.id,
        name=s.name,
        id_card=s.id_card,
        phone=s.phone,
        gender=s.gender,
        birth_date=s.birth_date,
        age=s.age,
        address=s.address,
        emergency_contact=s.emergency_contact,
        emergency_phone=s.emergency_phone,
        enrollment_status=s.enrollment_status,
        enrollment_date=s.enrollment_date,
        coach_name=s.coach_name,
        coach_subject2_name=s.coach_subject2_name,
        coach_subject3_name=s.coach_subject3_name,
        class_type_id=s.class_type_id,
        class_type_name=class_type_name,
        license_type=s.license_type,
        contract_amount=contract,
        actual_amount=to_decimal(s.actual_amount),
        discount_amount=discount,
        debt_amount=to_decimal(s.debt_amount),
        payable_amount=contract - discount,
        payment_status=s.payment_status,
        registrar_id=s.registrar_id,
        registrar_name=s.registrar_name,
        remarks=s.remarks,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _check_id_card(id_card: str) -> str:
    id_card = id_card.strip().upper()
    if not validate_id_card(id_card):
        raise ValidationError("身份证号格式不正确")
    return id_card


async def _ensure_unique_id_card(db: AsyncSession, id_card: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Student.id).where(Student.id_card == id_card)
    if exclude_id is not None:
        stmt = stmt.where(Student.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError("该身份证号已存在")


async def _class_type_price(db: AsyncSession, class_type_id: int) -> Decimal:
    ct = await db.get(ClassType, class_type_id)
    if not ct:
        raise NotFoundError("班型不存在")
    return to_decimal(ct.contract_amount)


async def _class_type_name(db: AsyncSession, class_type_id: Optional[int]) -> Optional[str]:
    if class_type_id is None:
        return None
    ct = await db.get(ClassType, class_type_id)
    return ct.name if ct else None


async def list_students(
    db: AsyncSession,
    keyword: Optional[str],
    status: Optional[str],
    coach_name: Optional[str],
    enrollment_date_start: Optional[date],
    enrollment_date_end: Optional[date],
    limit: int,
    offset: int,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListData[StudentResponse]:
    stmt = select(Student, ClassType.name).outerjoin(ClassType, Student.class_type_id == ClassType.id)
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(
            or_(Student.name.like(pattern), Student.id_card.like(pattern), Student.phone.like(pattern))
        )
    if status:
        stmt = stmt.where(Student.enrollment_status == status)
    if coach_name:
        stmt = stmt.where(Student.coach_name.like(f"%{coach_name}%"))
    if enrollment_date_start:
        stmt = stmt.where(Student.enrollment_date >= enrollment_date_start)
    if enrollment_date_end:
        stmt = stmt.where(Student.enrollment_date <= enrollment_date_end)
    stmt = apply_sort(stmt, SORT_COLUMNS, sort_by, sort_order, default="id")

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(
        list=[_student_to_response(s, ct_name) for s, ct_name in rows],
        pagination=pagination,
    )


async def get_student(db: AsyncSession, student_id: int) -> StudentResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("学员不存在")
    return _student_to_response(student, await _class_type_name(db, student.class_type_id))


async def create_student(
    db: AsyncSession, payload: StudentCreate, registrar: Optional[CurrentUser] = None
) -> StudentResponse:
    """Create a student; the class type's current price becomes the frozen contract amount."""
    id_card = _check_id_card(payload.id_card)
    if payload.enrollment_status not in DIRECTLY_SETTABLE_ENROLLMENT:
        raise ValidationError(f"新建学员的报名状态不能为{payload.enrollment_status.value}")
    await _ensure_unique_id_card(db, id_card)

    contract = Decimal("0")
    if payload.class_type_id is not None:
        contract = await _class_type_price(db, payload.class_type_id)

    birth_date, age = extract_birth_info(id_card)
    student = Student(
        name=payload.name.strip(),
        id_card=id_card,
        phone=payload.phone.strip(),
        gender=payload.gender,
        birth_date=birth_date,
        age=age,
        address=payload.address,
        emergency_contact=payload.emergency_contact,
        emergency_phone=payload.emergency_phone,
        enrollment_status=payload.enrollment_status.value,
        enrollment_date=payload.enrollment_date,
        coach_name=payload.coach_name,
        coach_subject2_name=payload.coach_subject2_name,
        coach_subject3_name=payload.coach_subject3_name,
        class_type_id=payload.class_type_id,
        license_type=payload.license_type or "C1",
        contract_amount=contract,
        actual_amount=Decimal("0"),
        discount_amount=Decimal("0"),
        debt_amount=contract,
        payment_status=PaymentStatus.UNPAID.value,
        registrar_id=registrar.id if registrar else None,
        registrar_name=registrar.username if registrar else None,
        remarks=payload.remarks,
    )
    db.add(student)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该身份证号已存在") from e
    await db.refresh(student)
    logger.info("Student %s created with contract %s", student.id, contract)
    return _student_to_response(student, await _class_type_name(db, student.class_type_id))


async def update_student(db: AsyncSession, student_id: int, payload: StudentUpdate) -> StudentResponse:
    """
    Update profile fields.

    enrollment_status may only be set to 咨询中/预约报名/报名未缴费 and only before any
    payment is recorded; later statuses are owned by the payment and exam engines.
    The contract amount follows a class type change only before enrollment.
    """
    result = await db.execute(select(Student).where(Student.id == student_id).with_for_update())
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("学员不存在")

    data = payload.model_dump(exclude_unset=True)

    new_status = data.pop("enrollment_status", None)
    if new_status is not None and new_status.value != student.enrollment_status:
        if new_status not in DIRECTLY_SETTABLE_ENROLLMENT:
            raise ValidationError(f"报名状态不能直接修改为{new_status.value}")
        if (
            student.payment_status != PaymentStatus.UNPAID.value
            or student.enrollment_status == EnrollmentStatus.DISQUALIFIED.value
        ):
            raise ValidationError("学员已产生缴费或考试记录，报名状态不能直接修改")
        student.enrollment_status = new_status.value

    id_card = data.pop("id_card", None)
    if id_card is not None:
        id_card = _check_id_card(id_card)
        await _ensure_unique_id_card(db, id_card, exclude_id=student.id)
        student.id_card = id_card
        student.birth_date, student.age = extract_birth_info(id_card)

    class_type_id = data.pop("class_type_id", None)
    if class_type_id is not None and class_type_id != student.class_type_id:
        price = await _class_type_price(db, class_type_id)
        student.class_type_id = class_type_id
        if EnrollmentStatus(student.enrollment_status) in PRE_ENROLLMENT:
            student.contract_amount = price
            student.debt_amount = (
                price - to_decimal(student.actual_amount) - to_decimal(student.discount_amount)
            )

    for field, value in data.items():
        if field in _REQUIRED_FIELDS:
            if value is None:
                continue
            value = value.strip()
        setattr(student, field, value)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该身份证号已存在") from e
    await db.refresh(student)
    return _student_to_response(student, await _class_type_name(db, student.class_type_id))


async def delete_student(db: AsyncSession, student_id: int) -> None:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("学员不存在")
    registrations = await db.execute(
        select(func.count(ExamRegistration.id)).where(ExamRegistration.student_id == student_id)
    )
    if registrations.scalar():
        raise ConflictError("该学员已有考试报名记录，无法删除")
    await db.delete(student)
    await db.commit()
    logger.info("Student %s deleted", student_id)
