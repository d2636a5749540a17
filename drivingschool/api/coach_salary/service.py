"""Coach monthly salary: generation, refresh, manual adjustment and deletion."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.api.salary_config.service import resolve_rates
from drivingschool.core.dates import parse_month
from drivingschool.core.enums import CoachStatus, SalaryStatus
from drivingschool.core.exceptions import ConflictError, NotFoundError, ValidationError
from drivingschool.core.models import Coach, CoachMonthlySalary
from drivingschool.core.query import apply_sort, paginate
from drivingschool.core.schemas import ListData

from .payroll import apply_salary_figures, count_coach_events
from .schemas import (
    BatchDeleteResult,
    CoachSalaryResponse,
    CoachSalaryUpdate,
    GenerateResult,
    RefreshResult,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "salary_month": CoachMonthlySalary.salary_month,
    "coach_name": CoachMonthlySalary.coach_name,
    "gross_salary": CoachMonthlySalary.gross_salary,
    "net_salary": CoachMonthlySalary.net_salary,
    "created_at": CoachMonthlySalary.created_at,
}


def _month_range(salary_month: str) -> Tuple[date, date]:
    try:
        return parse_month(salary_month)
    except ValueError as e:
        raise ValidationError("请提供有效的月份（格式：YYYY-MM）") from e


async def _get_or_404(db: AsyncSession, salary_id: int) -> CoachMonthlySalary:
    record = (
        await db.execute(select(CoachMonthlySalary).where(CoachMonthlySalary.id == salary_id).with_for_update())
    ).scalar_one_or_none()
    if not record:
        raise NotFoundError("工资记录不存在")
    return record


async def list_salaries(
    db: AsyncSession,
    salary_month: Optional[str],
    coach_name: Optional[str],
    status: Optional[str],
    limit: int,
    offset: int,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> ListData[CoachSalaryResponse]:
    stmt = select(CoachMonthlySalary)
    if salary_month:
        stmt = stmt.where(CoachMonthlySalary.salary_month == salary_month)
    if coach_name:
        stmt = stmt.where(CoachMonthlySalary.coach_name.like(f"%{coach_name}%"))
    if status:
        stmt = stmt.where(CoachMonthlySalary.status == status)
    stmt = apply_sort(stmt, SORT_COLUMNS, sort_by, sort_order, default="salary_month")
    stmt = stmt.order_by(CoachMonthlySalary.id.desc())
    rows, pagination = await paginate(db, stmt, limit, offset)
    return ListData(list=[CoachSalaryResponse.model_validate(r) for r in rows], pagination=pagination)


async def get_salary(db: AsyncSession, salary_id: int) -> CoachSalaryResponse:
    record = await db.get(CoachMonthlySalary, salary_id)
    if not record:
        raise NotFoundError("工资记录不存在")
    return CoachSalaryResponse.model_validate(record)


async def generate_salaries(db: AsyncSession, salary_month: str) -> GenerateResult:
    """Create a draft for every active coach without a record for the month. Re-running is a no-op."""
    start, end = _month_range(salary_month)
    rates = await resolve_rates(db, start)

    existing = select(CoachMonthlySalary.coach_id).where(CoachMonthlySalary.salary_month == salary_month)
    coaches = (
        await db.execute(
            select(Coach)
            .where(Coach.status == CoachStatus.ACTIVE.value, Coach.id.not_in(existing))
            .order_by(Coach.id)
        )
    ).scalars().all()

    for coach in coaches:
        record = CoachMonthlySalary(
            coach_id=coach.id,
            coach_name=coach.name,
            salary_month=salary_month,
            attendance_days=0,
            bonus=Decimal("0"),
            deduction=Decimal("0"),
            status=SalaryStatus.DRAFT.value,
        )
        apply_salary_figures(record, rates, *await count_coach_events(db, coach.name, start, end))
        db.add(record)

    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该月份工资记录正在生成，请稍后重试") from e
    logger.info("Generated %s salary records for %s", len(coaches), salary_month)
    return GenerateResult(generated=len(coaches))


async def refresh_salaries(db: AsyncSession, salary_month: str) -> RefreshResult:
    """Recompute counts and commissions of the month's unpaid records, keeping manual fields."""
    start, end = _month_range(salary_month)
    rates = await resolve_rates(db, start)

    records = (
        await db.execute(
            select(CoachMonthlySalary)
            .where(
                CoachMonthlySalary.salary_month == salary_month,
                CoachMonthlySalary.status != SalaryStatus.PAID.value,
            )
            .with_for_update()
        )
    ).scalars().all()

    for record in records:
        apply_salary_figures(record, rates, *await count_coach_events(db, record.coach_name, start, end))
    await db.commit()
    logger.info("Refreshed %s salary records for %s", len(records), salary_month)
    return RefreshResult(refreshed=len(records))


async def update_salary(db: AsyncSession, salary_id: int, payload: CoachSalaryUpdate) -> CoachSalaryResponse:
    """Apply manual fields, then recompute the whole record. Paid records are immutable."""
    record = await _get_or_404(db, salary_id)
    if record.status == SalaryStatus.PAID.value:
        raise ConflictError("已发放的工资不能修改")

    data = payload.model_dump(exclude_unset=True)
    for field, value in data.items():
        if value is None and field in ("attendance_days", "bonus", "deduction", "status"):
            continue
        if isinstance(value, SalaryStatus):
            value = value.value
        setattr(record, field, value)

    start, end = _month_range(record.salary_month)
    rates = await resolve_rates(db, start)
    apply_salary_figures(record, rates, *await count_coach_events(db, record.coach_name, start, end))
    await db.commit()
    await db.refresh(record)
    logger.info("Salary record %s updated: gross %s status %s", record.id, record.gross_salary, record.status)
    return CoachSalaryResponse.model_validate(record)


async def delete_salary(db: AsyncSession, salary_id: int) -> None:
    record = await _get_or_404(db, salary_id)
    if record.status == SalaryStatus.PAID.value:
        raise ConflictError("已发放的工资不能删除")
    await db.delete(record)
    await db.commit()


async def delete_month(db: AsyncSession, salary_month: str) -> BatchDeleteResult:
    _month_range(salary_month)
    paid = (
        await db.execute(
            select(func.count(CoachMonthlySalary.id)).where(
                CoachMonthlySalary.salary_month == salary_month,
                CoachMonthlySalary.status == SalaryStatus.PAID.value,
            )
        )
    ).scalar()
    if paid:
        raise ConflictError(f"该月份有 {paid} 条已发放的工资记录，不能删除")
    result = await db.execute(
        delete(CoachMonthlySalary)
        .where(CoachMonthlySalary.salary_month == salary_month)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Deleted %s salary records for %s", result.rowcount, salary_month)
    return BatchDeleteResult(deleted=result.rowcount)
