"""
Financial reconciliation for students.

Every operation runs in one transaction with the student row locked, and leaves
debt_amount == contract_amount - actual_amount - discount_amount exactly.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import PaymentRecordType, PaymentStatus
from drivingschool.core.exceptions import NotFoundError, ValidationError
from drivingschool.core.models import ClassType, PaymentRecord, Student
from drivingschool.core.money import to_decimal
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import (
    DebtStudentResponse,
    DiscountCreate,
    LastPayment,
    PaymentCreate,
    PaymentRecordResponse,
    PaymentResult,
    PaymentStatistics,
    RefundCreate,
    StudentBalance,
)

logger = logging.getLogger(__name__)

# Ledger method for system-generated refund and discount rows
LEDGER_METHOD_OTHER = "其他"


def derive_payment_status(contract: Decimal, actual: Decimal, discount: Decimal) -> PaymentStatus:
    """Status from paid-equivalent (actual + discount). Exact comparison, no tolerance."""
    paid_equivalent = actual + discount
    if paid_equivalent >= contract:
        return PaymentStatus.PAID
    if paid_equivalent > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def _apply_balance(student: Student, actual: Decimal, discount: Decimal, status: PaymentStatus) -> None:
    contract = to_decimal(student.contract_amount)
    old_status = student.payment_status
    student.actual_amount = actual
    student.discount_amount = discount
    student.debt_amount = contract - actual - discount
    student.payment_status = status.value
    student.enrollment_status = status.enrollment_status.value
    if old_status != status.value:
        logger.info("Student %s payment status %s -> %s", student.id, old_status, status.value)


def _balance(student: Student) -> StudentBalance:
    return StudentBalance(
        student_id=student.id,
        contract_amount=to_decimal(student.contract_amount),
        actual_amount=to_decimal(student.actual_amount),
        discount_amount=to_decimal(student.discount_amount),
        debt_amount=to_decimal(student.debt_amount),
        payment_status=student.payment_status,
        enrollment_status=student.enrollment_status,
    )


async def _lock_student(db: AsyncSession, student_id: int) -> Student:
    result = await db.execute(select(Student).where(Student.id == student_id).with_for_update())
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("学员不存在")
    return student


async def _commit_result(db: AsyncSession, student: Student, record: Optional[PaymentRecord]) -> PaymentResult:
    await db.commit()
    await db.refresh(student)
    if record is not None:
        await db.refresh(record)
        return PaymentResult(record=PaymentRecordResponse.model_validate(record), balance=_balance(student))
    return PaymentResult(balance=_balance(student))


async def record_payment(db: AsyncSession, payload: PaymentCreate) -> PaymentResult:
    student = await _lock_student(db, payload.student_id)
    contract = to_decimal(student.contract_amount)
    actual = to_decimal(student.actual_amount) + payload.amount
    discount = to_decimal(student.discount_amount)

    record = PaymentRecord(
        student_id=student.id,
        record_type=PaymentRecordType.PAYMENT.value,
        amount=payload.amount,
        payment_date=payload.payment_date,
        payment_method=payload.payment_method.strip(),
        operator=payload.operator.strip(),
        notes=payload.notes,
    )
    db.add(record)
    _apply_balance(student, actual, discount, derive_payment_status(contract, actual, discount))
    await db.flush()
    logger.info("Payment %s recorded for student %s", payload.amount, student.id)
    return await _commit_result(db, student, record)


async def refund(db: AsyncSession, payload: RefundCreate, today: Optional[date] = None) -> PaymentResult:
    """Refund part or all of the actual amount. The student is marked 已退费 regardless of the remainder."""
    student = await _lock_student(db, payload.student_id)
    current_actual = to_decimal(student.actual_amount)
    if payload.amount > current_actual:
        raise ValidationError(f"退费金额不能超过实收金额 ¥{current_actual:.2f}")

    record = PaymentRecord(
        student_id=student.id,
        record_type=PaymentRecordType.REFUND.value,
        amount=-payload.amount,
        payment_date=today or date.today(),
        payment_method=LEDGER_METHOD_OTHER,
        operator=payload.operator.strip(),
        notes=f"退费：{payload.notes or '学员退费'}",
    )
    db.add(record)
    _apply_balance(
        student,
        current_actual - payload.amount,
        to_decimal(student.discount_amount),
        PaymentStatus.REFUNDED,
    )
    await db.flush()
    logger.info("Refund %s recorded for student %s", payload.amount, student.id)
    return await _commit_result(db, student, record)


async def add_discount(db: AsyncSession, payload: DiscountCreate, today: Optional[date] = None) -> PaymentResult:
    student = await _lock_student(db, payload.student_id)
    contract = to_decimal(student.contract_amount)
    actual = to_decimal(student.actual_amount)
    discount = to_decimal(student.discount_amount) + payload.amount
    if discount > contract:
        raise ValidationError(f"累计减免金额不能超过合同金额 ¥{contract:.2f}")

    record = PaymentRecord(
        student_id=student.id,
        record_type=PaymentRecordType.DISCOUNT.value,
        amount=-payload.amount,
        payment_date=today or date.today(),
        payment_method=LEDGER_METHOD_OTHER,
        operator=payload.operator.strip(),
        notes=f"减免：{payload.notes or '费用减免'}",
    )
    db.add(record)
    _apply_balance(student, actual, discount, derive_payment_status(contract, actual, discount))
    await db.flush()
    logger.info("Discount %s recorded for student %s", payload.amount, student.id)
    return await _commit_result(db, student, record)


async def delete_payment_record(db: AsyncSession, record_id: int) -> PaymentResult:
    """
    Reverse a ledger row, then delete it.

    Discount rows give back discount_amount; payment and refund rows are undone on
    actual_amount by their signed amount. The status rule is applied to the result.
    """
    record = await db.get(PaymentRecord, record_id)
    if not record:
        raise NotFoundError("缴费记录不存在")
    student = await _lock_student(db, record.student_id)

    contract = to_decimal(student.contract_amount)
    actual = to_decimal(student.actual_amount)
    discount = to_decimal(student.discount_amount)
    amount = to_decimal(record.amount)

    if record.record_type == PaymentRecordType.DISCOUNT.value:
        discount -= abs(amount)
    else:
        actual -= amount
    if actual < 0 or discount < 0:
        raise ValidationError("删除该记录后金额将为负数，请先删除相关的退费或减免记录")

    await db.delete(record)
    _apply_balance(student, actual, discount, derive_payment_status(contract, actual, discount))
    await db.flush()
    logger.info("Payment record %s (%s %s) reversed for student %s", record_id, record.record_type, amount, student.id)
    return await _commit_result(db, student, None)


async def list_student_records(db: AsyncSession, student_id: int) -> List[PaymentRecordResponse]:
    if not await db.get(Student, student_id):
        raise NotFoundError("学员不存在")
    result = await db.execute(
        select(PaymentRecord)
        .where(PaymentRecord.student_id == student_id)
        .order_by(PaymentRecord.payment_date.desc(), PaymentRecord.id.desc())
    )
    return [PaymentRecordResponse.model_validate(r) for r in result.scalars().all()]


async def list_debts(
    db: AsyncSession, keyword: Optional[str], limit: int, offset: int
) -> ListData[DebtStudentResponse]:
    stmt = (
        select(Student, ClassType.name)
        .outerjoin(ClassType, Student.class_type_id == ClassType.id)
        .where(Student.debt_amount > 0, Student.payment_status != PaymentStatus.REFUNDED.value)
    )
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(
            or_(Student.name.like(pattern), Student.phone.like(pattern), Student.id_card.like(pattern))
        )
    stmt = stmt.order_by(Student.debt_amount.desc(), Student.enrollment_date.asc(), Student.id.asc())

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    items = [
        DebtStudentResponse(
            id=s.id,
            name=s.name,
            phone=s.phone,
            id_card=s.id_card,
            class_type_name=ct_name,
            contract_amount=to_decimal(s.contract_amount),
            actual_amount=to_decimal(s.actual_amount),
            discount_amount=to_decimal(s.discount_amount),
            debt_amount=to_decimal(s.debt_amount),
            payment_status=s.payment_status,
            enrollment_date=s.enrollment_date,
        )
        for s, ct_name in rows
    ]
    return ListData(list=items, pagination=pagination)


async def get_statistics(db: AsyncSession, student_id: int) -> PaymentStatistics:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("学员不存在")
    class_type = await db.get(ClassType, student.class_type_id) if student.class_type_id else None

    count_result = await db.execute(
        select(func.count(PaymentRecord.id)).where(PaymentRecord.student_id == student_id)
    )
    last_result = await db.execute(
        select(PaymentRecord)
        .where(PaymentRecord.student_id == student_id)
        .order_by(PaymentRecord.payment_date.desc(), PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
        .limit(1)
    )
    last = last_result.scalar_one_or_none()

    return PaymentStatistics(
        student_id=student.id,
        name=student.name,
        class_type_name=class_type.name if class_type else None,
        balance=_balance(student),
        payment_count=count_result.scalar() or 0,
        last_payment=LastPayment(payment_date=last.payment_date, amount=to_decimal(last.amount)) if last else None,
    )
