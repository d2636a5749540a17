"""
Exam progress engine.

Each of the four subjects is an independent state machine:
未考 -> 已通过 | 未通过, with a consecutive-failure counter that escalates to
warnings at 3 and 4 and revokes the exam qualification at 5.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.core.enums import (
    EnrollmentStatus,
    ExamQualification,
    ExamResult,
    ExamSubject,
    SubjectStatus,
    WarningType,
)
from drivingschool.core.models import ExamWarningLog, Student, StudentExamProgress

logger = logging.getLogger(__name__)

PROGRESS_PER_SUBJECT = 25
THIRD_FAILURE = 3
FOURTH_FAILURE = 4
REVOKE_AT_FAILURE = 5


def new_progress(student_id: int, license_type: Optional[str] = None) -> StudentExamProgress:
    progress = StudentExamProgress(
        student_id=student_id,
        license_type=license_type,
        total_progress=0,
        exam_qualification=ExamQualification.NORMAL.value,
    )
    for subject in ExamSubject:
        setattr(progress, f"{subject.prefix}_status", SubjectStatus.NOT_TAKEN.value)
        setattr(progress, f"{subject.prefix}_total_count", 0)
        setattr(progress, f"{subject.prefix}_failed_count", 0)
        setattr(progress, f"{subject.prefix}_pass_date", None)
    return progress


def compute_total_progress(progress: StudentExamProgress) -> int:
    passed = sum(
        1 for subject in ExamSubject
        if getattr(progress, f"{subject.prefix}_status") == SubjectStatus.PASSED.value
    )
    return PROGRESS_PER_SUBJECT * passed


def apply_exam_result(
    progress: StudentExamProgress,
    subject: ExamSubject,
    result: ExamResult,
    today: date,
) -> List[Tuple[WarningType, str]]:
    """
    Apply one exam result to the progress row in place.

    Returns the warnings the result triggers, in order. A pass resets the
    failure counter; a failure escalates on the new counter value.
    """
    prefix = subject.prefix
    total = (getattr(progress, f"{prefix}_total_count") or 0) + 1
    setattr(progress, f"{prefix}_total_count", total)

    warnings: List[Tuple[WarningType, str]] = []
    if result == ExamResult.PASS:
        setattr(progress, f"{prefix}_failed_count", 0)
        setattr(progress, f"{prefix}_status", SubjectStatus.PASSED.value)
        setattr(progress, f"{prefix}_pass_date", today)
    elif result == ExamResult.FAIL:
        failed = (getattr(progress, f"{prefix}_failed_count") or 0) + 1
        setattr(progress, f"{prefix}_failed_count", failed)
        setattr(progress, f"{prefix}_status", SubjectStatus.FAILED.value)

        if failed == THIRD_FAILURE:
            warnings.append(
                (WarningType.THIRD_FAILURE, f"学员{subject.value}已连续3次未通过，请注意考试安排")
            )
        elif failed == FOURTH_FAILURE:
            warnings.append(
                (WarningType.FOURTH_FAILURE, f"学员{subject.value}已连续4次未通过，请慎重约考第5次考试")
            )
        elif failed >= REVOKE_AT_FAILURE:
            progress.exam_qualification = ExamQualification.REVOKED.value
            progress.disqualified_date = today
            progress.disqualified_reason = f"{subject.value}连续5次未通过"
            warnings.append(
                (WarningType.REVOKED, f"学员{subject.value}连续5次未通过，驾考资格已作废")
            )
    else:
        raise ValueError(f"not a final exam result: {result}")

    progress.total_progress = compute_total_progress(progress)
    return warnings


async def get_or_create_progress(db: AsyncSession, student: Student) -> StudentExamProgress:
    """Progress rows are created lazily; the caller commits."""
    result = await db.execute(
        select(StudentExamProgress).where(StudentExamProgress.student_id == student.id).with_for_update()
    )
    progress = result.scalar_one_or_none()
    if progress is None:
        progress = new_progress(student.id, student.license_type)
        db.add(progress)
        await db.flush()
    return progress


async def record_exam_result(
    db: AsyncSession,
    student: Student,
    subject: ExamSubject,
    result: ExamResult,
    today: date,
) -> Tuple[StudentExamProgress, List[Tuple[WarningType, str]]]:
    """Apply a result, write the warning logs and cascade revocation to the student."""
    progress = await get_or_create_progress(db, student)
    warnings = apply_exam_result(progress, subject, result, today)

    for warning_type, content in warnings:
        db.add(
            ExamWarningLog(
                student_id=student.id,
                warning_type=warning_type.value,
                warning_subject=subject.value,
                warning_content=content,
                is_handled=False,
            )
        )
        logger.info("Exam warning %s for student %s (%s)", warning_type.value, student.id, subject.value)
        if warning_type == WarningType.REVOKED:
            student.enrollment_status = EnrollmentStatus.DISQUALIFIED.value
            logger.info("Student %s exam qualification revoked", student.id)

    await db.flush()
    return progress, warnings
