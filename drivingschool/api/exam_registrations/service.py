"""
Exam registrations: admission onto a schedule and result entry.

Admission and result entry each run in one transaction. The schedule's
arranged_count is moved only by conditional UPDATEs so concurrent
registrations cannot overbook the last seat.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import EnrollmentStatus, ExamQualification, ExamResult, ExamSubject
from drivingschool.core.exceptions import ConflictError, NotFoundError, ValidationError
from drivingschool.core.models import (
    ExamRegistration,
    ExamSchedule,
    ExamVenue,
    Student,
    StudentExamProgress,
)
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .progress import record_exam_result
from .schemas import (
    ExamRegistrationCreate,
    ExamRegistrationResponse,
    ExamResultResponse,
    ExamResultUpdate,
    SubjectProgress,
)

logger = logging.getLogger(__name__)


def _base_query():
    return (
        select(ExamRegistration, Student, ExamSchedule, ExamVenue.name)
        .join(Student, ExamRegistration.student_id == Student.id)
        .join(ExamSchedule, ExamRegistration.exam_schedule_id == ExamSchedule.id)
        .outerjoin(ExamVenue, ExamSchedule.venue_id == ExamVenue.id)
    )


def _registration_to_response(
    er: ExamRegistration,
    student: Optional[Student],
    schedule: Optional[ExamSchedule],
    venue_name: Optional[str],
) -> ExamRegistrationResponse:
    return ExamRegistrationResponse(
        id=er.id,
        student_id=er.student_id,
        student_name=student.name if student else None,
        student_phone=student.phone if student else None,
        exam_schedule_id=er.exam_schedule_id,
        exam_date=schedule.exam_date if schedule else None,
        exam_type=schedule.exam_type if schedule else None,
        venue_name=venue_name,
        exam_result=er.exam_result,
        exam_score=er.exam_score,
        notes=er.notes,
        registration_date=er.registration_date,
    )


async def list_registrations(
    db: AsyncSession,
    student_id: Optional[int],
    exam_schedule_id: Optional[int],
    exam_result: Optional[str],
    limit: int,
    offset: int,
) -> ListData[ExamRegistrationResponse]:
    stmt = _base_query()
    if student_id:
        stmt = stmt.where(ExamRegistration.student_id == student_id)
    if exam_schedule_id:
        stmt = stmt.where(ExamRegistration.exam_schedule_id == exam_schedule_id)
    if exam_result:
        stmt = stmt.where(ExamRegistration.exam_result == exam_result)
    stmt = stmt.order_by(ExamSchedule.exam_date.desc(), ExamRegistration.registration_date.desc(), ExamRegistration.id.desc())

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(
        list=[_registration_to_response(er, s, es, venue) for er, s, es, venue in rows],
        pagination=pagination,
    )


async def get_registration(db: AsyncSession, registration_id: int) -> ExamRegistrationResponse:
    row = (await db.execute(_base_query().where(ExamRegistration.id == registration_id))).first()
    if not row:
        raise NotFoundError("考试报名记录不存在")
    return _registration_to_response(*row)


async def create_registration(db: AsyncSession, payload: ExamRegistrationCreate) -> ExamRegistrationResponse:
    """
    Admit a student onto a schedule.

    Rejects disqualified students, full schedules, revoked qualifications and
    duplicate (student, schedule) pairs.
    """
    student = (
        await db.execute(select(Student).where(Student.id == payload.student_id).with_for_update())
    ).scalar_one_or_none()
    if not student:
        raise NotFoundError("学员不存在")
    if student.enrollment_status == EnrollmentStatus.DISQUALIFIED.value:
        raise ValidationError("该学员已废考，无法报名考试")

    schedule = await db.get(ExamSchedule, payload.exam_schedule_id)
    if not schedule:
        raise NotFoundError("考试安排不存在")
    if schedule.arranged_count >= schedule.capacity:
        raise ConflictError("该考试安排已满，无法报名")

    qualification = (
        await db.execute(
            select(StudentExamProgress.exam_qualification).where(StudentExamProgress.student_id == student.id)
        )
    ).scalar_one_or_none()
    if qualification == ExamQualification.REVOKED.value:
        raise ValidationError("该学员驾考资格已作废，无法报名考试")

    existing = await db.execute(
        select(ExamRegistration.id).where(
            ExamRegistration.student_id == student.id,
            ExamRegistration.exam_schedule_id == schedule.id,
        )
    )
    if existing.first():
        raise ConflictError("该学员已报名此考试")

    seat = await db.execute(
        update(ExamSchedule)
        .where(ExamSchedule.id == schedule.id, ExamSchedule.arranged_count < ExamSchedule.capacity)
        .values(arranged_count=ExamSchedule.arranged_count + 1)
        .execution_options(synchronize_session=False)
    )
    if seat.rowcount == 0:
        await db.rollback()
        raise ConflictError("该考试安排已满，无法报名")

    er = ExamRegistration(
        student_id=student.id,
        exam_schedule_id=schedule.id,
        exam_result=ExamResult.PENDING.value,
        notes=payload.notes,
    )
    db.add(er)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("该学员已报名此考试") from e
    await db.refresh(er)
    await db.refresh(schedule)
    logger.info(
        "Student %s registered for schedule %s (%s/%s)",
        student.id, schedule.id, schedule.arranged_count, schedule.capacity,
    )
    venue = await db.get(ExamVenue, schedule.venue_id)
    return _registration_to_response(er, student, schedule, venue.name if venue else None)


async def record_result(
    db: AsyncSession,
    registration_id: int,
    payload: ExamResultUpdate,
    today: Optional[date] = None,
) -> ExamResultResponse:
    """Record 通过/未通过 for a registration and run the progress engine for its subject."""
    if payload.exam_result not in (ExamResult.PASS, ExamResult.FAIL):
        raise ValidationError('考试结果必须为"通过"或"未通过"')
    today = today or date.today()

    er = (
        await db.execute(select(ExamRegistration).where(ExamRegistration.id == registration_id).with_for_update())
    ).scalar_one_or_none()
    if not er:
        raise NotFoundError("考试报名记录不存在")
    if er.exam_result != ExamResult.PENDING.value:
        raise ConflictError("该考试结果已录入，不能重复录入")

    schedule = await db.get(ExamSchedule, er.exam_schedule_id)
    try:
        subject = ExamSubject(schedule.exam_type)
    except ValueError as e:
        raise ValidationError("无效的考试类型") from e
    student = (
        await db.execute(select(Student).where(Student.id == er.student_id).with_for_update())
    ).scalar_one()

    er.exam_result = payload.exam_result.value
    er.exam_score = payload.exam_score
    if payload.notes is not None:
        er.notes = payload.notes

    progress, warnings = await record_exam_result(db, student, subject, payload.exam_result, today)

    await db.commit()
    await db.refresh(er)
    await db.refresh(progress)
    logger.info("Registration %s result %s (%s)", er.id, er.exam_result, subject.value)

    prefix = subject.prefix
    venue = await db.get(ExamVenue, schedule.venue_id)
    return ExamResultResponse(
        registration=_registration_to_response(er, student, schedule, venue.name if venue else None),
        subject_progress=SubjectProgress(
            subject=subject.value,
            status=getattr(progress, f"{prefix}_status"),
            total_count=getattr(progress, f"{prefix}_total_count"),
            failed_count=getattr(progress, f"{prefix}_failed_count"),
            pass_date=getattr(progress, f"{prefix}_pass_date"),
        ),
        total_progress=progress.total_progress,
        exam_qualification=progress.exam_qualification,
        warnings=[warning_type.value for warning_type, _ in warnings],
    )


async def delete_registration(db: AsyncSession, registration_id: int) -> None:
    er = await db.get(ExamRegistration, registration_id)
    if not er:
        raise NotFoundError("考试报名记录不存在")
    schedule_id = er.exam_schedule_id
    await db.delete(er)
    await db.execute(
        update(ExamSchedule)
        .where(ExamSchedule.id == schedule_id, ExamSchedule.arranged_count > 0)
        .values(arranged_count=ExamSchedule.arranged_count - 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    logger.info("Registration %s deleted, schedule %s seat released", registration_id, schedule_id)
