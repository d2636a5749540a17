from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel

from drivingschool.api.exam_registrations.schemas import SubjectProgress


class StudentProgressResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    student_phone: Optional[str] = None
    student_id_card: Optional[str] = None
    enrollment_date: Optional[date] = None
    license_type: Optional[str] = None
    subjects: List[SubjectProgress]
    total_progress: int
    exam_qualification: str
    disqualified_date: Optional[date] = None
    disqualified_reason: Optional[str] = None
    updated_at: datetime


class ProgressOverview(BaseModel):
    total_students: int
    subject1_passed: int
    subject2_passed: int
    subject3_passed: int
    subject4_passed: int
    fully_completed: int
    avg_progress: Decimal


class EligibilityResponse(BaseModel):
    eligible: bool
    reason: str = ""


class WarningLevels(BaseModel):
    """Current consecutive-failure count per subject."""

    subject1_warning_level: int = 0
    subject2_warning_level: int = 0
    subject3_warning_level: int = 0
    subject4_warning_level: int = 0
    exam_qualification: str
