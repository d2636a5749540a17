"""Read side of the exam progress engine."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.api.exam_registrations.progress import get_or_create_progress
from drivingschool.api.exam_registrations.schemas import SubjectProgress
from drivingschool.core.enums import EnrollmentStatus, ExamQualification, ExamSubject, SubjectStatus
from drivingschool.core.exceptions import NotFoundError, ValidationError
from drivingschool.core.models import Student, StudentExamProgress
from drivingschool.core.query import paginate
from drivingschool.core.schemas import ListData

from .schemas import EligibilityResponse, ProgressOverview, StudentProgressResponse, WarningLevels


def _progress_to_response(p: StudentExamProgress, s: Optional[Student]) -> StudentProgressResponse:
    return StudentProgressResponse(
        id=p.id,
        student_id=p.student_id,
        student_name=s.name if s else None,
        student_phone=s.phone if s else None,
        student_id_card=s.id_card if s else None,
        enrollment_date=s.enrollment_date if s else None,
        license_type=p.license_type or (s.license_type if s else None),
        subjects=[
            SubjectProgress(
                subject=subject.value,
                status=getattr(p, f"{subject.prefix}_status"),
                total_count=getattr(p, f"{subject.prefix}_total_count"),
                failed_count=getattr(p, f"{subject.prefix}_failed_count"),
                pass_date=getattr(p, f"{subject.prefix}_pass_date"),
            )
            for subject in ExamSubject
        ],
        total_progress=p.total_progress,
        exam_qualification=p.exam_qualification,
        disqualified_date=p.disqualified_date,
        disqualified_reason=p.disqualified_reason,
        updated_at=p.updated_at,
    )


async def list_progress(
    db: AsyncSession,
    keyword: Optional[str],
    subject_statuses: Dict[ExamSubject, Optional[str]],
    limit: int,
    offset: int,
) -> ListData[StudentProgressResponse]:
    stmt = select(StudentExamProgress, Student).join(Student, StudentExamProgress.student_id == Student.id)
    if keyword:
        pattern = f"%{keyword}%"
        stmt = stmt.where(
            or_(Student.name.like(pattern), Student.phone.like(pattern), Student.id_card.like(pattern))
        )
    for subject, status in subject_statuses.items():
        if status:
            stmt = stmt.where(getattr(StudentExamProgress, f"{subject.prefix}_status") == status)
    stmt = stmt.order_by(StudentExamProgress.updated_at.desc(), StudentExamProgress.id.desc())

    rows, pagination = await paginate(db, stmt, limit, offset, scalars=False)
    return ListData(list=[_progress_to_response(p, s) for p, s in rows], pagination=pagination)


async def get_student_progress(db: AsyncSession, student_id: int) -> StudentProgressResponse:
    """Progress for a student, creating the row on first access."""
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("学员不存在")
    progress = await get_or_create_progress(db, student)
    await db.commit()
    await db.refresh(progress)
    return _progress_to_response(progress, student)


async def get_overview(db: AsyncSession) -> ProgressOverview:
    def passed(subject: ExamSubject):
        column = getattr(StudentExamProgress, f"{subject.prefix}_status")
        return func.coalesce(func.sum(case((column == SubjectStatus.PASSED.value, 1), else_=0)), 0)

    row = (
        await db.execute(
            select(
                func.count(func.distinct(StudentExamProgress.student_id)),
                passed(ExamSubject.SUBJECT1),
                passed(ExamSubject.SUBJECT2),
                passed(ExamSubject.SUBJECT3),
                passed(ExamSubject.SUBJECT4),
                func.coalesce(func.sum(case((StudentExamProgress.total_progress == 100, 1), else_=0)), 0),
                func.avg(StudentExamProgress.total_progress),
            )
        )
    ).one()
    avg = Decimal(str(row[6])) if row[6] is not None else Decimal("0")
    return ProgressOverview(
        total_students=row[0] or 0,
        subject1_passed=int(row[1]),
        subject2_passed=int(row[2]),
        subject3_passed=int(row[3]),
        subject4_passed=int(row[4]),
        fully_completed=int(row[5]),
        avg_progress=avg.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
    )


async def check_eligibility(db: AsyncSession, student_id: int, subject_name: str) -> EligibilityResponse:
    student = await db.get(Student, student_id)
    if not student:
        raise NotFoundError("学员不存在")
    if student.enrollment_status == EnrollmentStatus.DISQUALIFIED.value:
        return EligibilityResponse(eligible=False, reason="该学员已废考，无法报考任何科目")
    try:
        subject = ExamSubject(subject_name)
    except ValueError as e:
        raise ValidationError("无效的科目名称") from e

    progress = (
        await db.execute(select(StudentExamProgress).where(StudentExamProgress.student_id == student_id))
    ).scalar_one_or_none()
    if progress is None:
        return EligibilityResponse(eligible=True)
    if progress.exam_qualification == ExamQualification.REVOKED.value:
        return EligibilityResponse(eligible=False, reason="该学员驾考资格已作废，无法报考任何科目")
    if getattr(progress, f"{subject.prefix}_status") == SubjectStatus.PASSED.value:
        return EligibilityResponse(eligible=False, reason=f"该学员{subject.value}已通过，无需再次报考")
    return EligibilityResponse(eligible=True)


async def get_warning_levels(db: AsyncSession, progress_id: int) -> WarningLevels:
    progress = await db.get(StudentExamProgress, progress_id)
    if progress is None:
        return WarningLevels(exam_qualification=ExamQualification.NORMAL.value)
    return WarningLevels(
        subject1_warning_level=progress.subject1_failed_count,
        subject2_warning_level=progress.subject2_failed_count,
        subject3_warning_level=progress.subject3_failed_count,
        subject4_warning_level=progress.subject4_failed_count,
        exam_qualification=progress.exam_qualification,
    )
