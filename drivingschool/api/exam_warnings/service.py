"""Exam warning logs. Marking handled is the only mutation a log receives."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.models import User
from drivingschool.auth.schemas import CurrentUser
from drivingschool.core.enums import WarningType
from drivingschool.core.exceptions import NotFoundError, ValidationError
from drivingschool.core.models import ExamWarningLog, Student
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import BatchHandleResult, ExamWarningResponse, WarningBatchHandle, WarningHandle, WarningStatistics

logger = logging.getLogger(__name__)


def _base_query():
    return (
        select(ExamWarningLog, Student.name, Student.phone, User.username)
        .join(Student, ExamWarningLog.student_id == Student.id)
        .outerjoin(User, ExamWarningLog.handled_by == User.id)
    )


def _warning_to_response(
    w: ExamWarningLog,
    student_name: Optional[str],
    student_phone: Optional[str],
    handler_name: Optional[str],
) -> ExamWarningResponse:
    return ExamWarningResponse(
        id=w.id,
        student_id=w.student_id,
        student_name=student_name,
        student_phone=student_phone,
        warning_type=w.warning_type,
        warning_subject=w.warning_subject,
        warning_content=w.warning_content,
        is_handled=bool(w.is_handled),
        handled_by=w.handled_by,
        handler_name=handler_name,
        handled_time=w.handled_time,
        handled_notes=w.handled_notes,
        created_at=w.created_at,
    )


async def list_warnings(
    db: AsyncSession,
    student_id: Optional[int],
    warning_type: Optional[str],
    warning_subject: Optional[str],
    is_handled: Optional[bool],
    limit: int,
    offset: int,
) -> ListData[ExamWarningResponse]:
    stmt = _base_query()
    if student_id:
        stmt = stmt.where(ExamWarningLog.student_id == student_id)
    if warning_type:
        stmt = stmt.where(ExamWarningLog.warning_type == warning_type)
    if warning_subject:
        stmt = stmt.where(ExamWarningLog.warning_subject == warning_subject)
    if is_handled is not None:
        stmt = stmt.where(ExamWarningLog.is_handled == is_handled)
    stmt = stmt.order_by(ExamWarningLog.created_at.desc(), ExamWarningLog.id.desc())

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(list=[_warning_to_response(*row) for row in rows], pagination=pagination)


async def get_warning(db: AsyncSession, warning_id: int) -> ExamWarningResponse:
    row = (await db.execute(_base_query().where(ExamWarningLog.id == warning_id))).first()
    if not row:
        raise NotFoundError("预警记录不存在")
    return _warning_to_response(*row)


async def get_statistics(db: AsyncSession) -> WarningStatistics:
    unhandled = ExamWarningLog.is_handled.is_(False)

    def unhandled_of(warning_type: WarningType):
        return func.coalesce(
            func.sum(case(((ExamWarningLog.warning_type == warning_type.value) & unhandled, 1), else_=0)),
            0,
        )

    row = (
        await db.execute(
            select(
                unhandled_of(WarningType.THIRD_FAILURE),
                unhandled_of(WarningType.FOURTH_FAILURE),
                unhandled_of(WarningType.REVOKED),
                func.coalesce(func.sum(case((unhandled, 1), else_=0)), 0),
                func.coalesce(func.sum(case((ExamWarningLog.is_handled.is_(True), 1), else_=0)), 0),
            )
        )
    ).one()
    return WarningStatistics(
        warning_3_count=int(row[0]),
        warning_4_count=int(row[1]),
        disqualified_count=int(row[2]),
        total_unhandled=int(row[3]),
        total_handled=int(row[4]),
    )


async def handle_warning(
    db: AsyncSession, warning_id: int, payload: WarningHandle, handler: CurrentUser
) -> ExamWarningResponse:
    warning = (
        await db.execute(select(ExamWarningLog).where(ExamWarningLog.id == warning_id).with_for_update())
    ).scalar_one_or_none()
    if not warning:
        raise NotFoundError("预警记录不存在")
    if warning.is_handled:
        raise ValidationError("该预警已被处理")

    warning.is_handled = True
    warning.handled_by = handler.id
    warning.handled_time = datetime.now(timezone.utc)
    warning.handled_notes = payload.handled_notes
    await db.commit()
    logger.info("Warning %s handled by user %s", warning_id, handler.id)
    return await get_warning(db, warning_id)


async def handle_warnings_batch(
    db: AsyncSession, payload: WarningBatchHandle, handler: CurrentUser
) -> BatchHandleResult:
    """Mark every still-unhandled warning in ids as handled; handled ones are left untouched."""
    result = await db.execute(
        update(ExamWarningLog)
        .where(ExamWarningLog.id.in_(payload.ids), ExamWarningLog.is_handled.is_(False))
        .values(
            is_handled=True,
            handled_by=handler.id,
            handled_time=datetime.now(timezone.utc),
            handled_notes=payload.handled_notes,
        )
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("%s warnings handled by user %s", result.rowcount, handler.id)
    return BatchHandleResult(handled=result.rowcount)
