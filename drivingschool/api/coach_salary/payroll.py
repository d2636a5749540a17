"""
Coach payroll calculator.

gross = attendance_days * base_daily_salary
      + subject2 passes * subject2_commission
      + subject3 passes * subject3_commission
      + new students * recruitment_commission
      + bonus - deduction

Rates are those in force on the first day of the salary month.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import ExamResult, ExamSubject, SalaryConfigType
from drivingschool.core.models import CoachMonthlySalary, ExamRegistration, ExamSchedule, Student
from drivingschool.core.money import to_decimal

CENT = Decimal("0.01")


def _money(val: Decimal) -> Decimal:
    return val.quantize(CENT, rounding=ROUND_HALF_UP)


def apply_salary_figures(
    record: CoachMonthlySalary,
    rates: Dict[SalaryConfigType, Decimal],
    subject2_passes: int,
    subject3_passes: int,
    new_students: int,
) -> None:
    """Recompute every derived figure on record from its manual fields, the counts and the rates."""
    record.subject2_pass_count = subject2_passes
    record.subject3_pass_count = subject3_passes
    record.new_student_count = new_students

    record.base_salary = _money(record.attendance_days * rates[SalaryConfigType.BASE_DAILY_SALARY])
    record.subject2_commission = _money(subject2_passes * rates[SalaryConfigType.SUBJECT2_COMMISSION])
    record.subject3_commission = _money(subject3_passes * rates[SalaryConfigType.SUBJECT3_COMMISSION])
    record.recruitment_commission = _money(new_students * rates[SalaryConfigType.RECRUITMENT_COMMISSION])
    record.gross_salary = _money(
        record.base_salary
        + record.subject2_commission
        + record.subject3_commission
        + record.recruitment_commission
        + to_decimal(record.bonus)
        - to_decimal(record.deduction)
    )


async def _count_passes(
    db: AsyncSession, coach_column, subject: ExamSubject, coach_name: str, start: date, end: date
) -> int:
    result = await db.execute(
        select(func.count(ExamRegistration.id))
        .join(ExamSchedule, ExamRegistration.exam_schedule_id == ExamSchedule.id)
        .join(Student, ExamRegistration.student_id == Student.id)
        .where(
            coach_column == coach_name,
            ExamSchedule.exam_type == subject.value,
            ExamRegistration.exam_result == ExamResult.PASS.value,
            ExamSchedule.exam_date >= start,
            ExamSchedule.exam_date < end,
        )
    )
    return result.scalar() or 0


async def count_coach_events(db: AsyncSession, coach_name: str, start: date, end: date) -> Tuple[int, int, int]:
    """(subject-2 passes, subject-3 passes, new students) attributed to coach_name in [start, end)."""
    subject2 = await _count_passes(db, Student.coach_subject2_name, ExamSubject.SUBJECT2, coach_name, start, end)
    subject3 = await _count_passes(db, Student.coach_subject3_name, ExamSubject.SUBJECT3, coach_name, start, end)
    result = await db.execute(
        select(func.count(Student.id)).where(
            Student.coach_name == coach_name,
            Student.enrollment_date >= start,
            Student.enrollment_date < end,
        )
    )
    return subject2, subject3, result.scalar() or 0
