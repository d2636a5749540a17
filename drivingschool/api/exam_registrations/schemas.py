"""Exam registration schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import ExamResult


class ExamRegistrationCreate(BaseModel):
    student_id: int
    exam_schedule_id: int
    notes: Optional[str] = None


class ExamResultUpdate(BaseModel):
    exam_result: ExamResult
    exam_score: Optional[Decimal] = Field(None, ge=0, le=100, max_digits=5, decimal_places=1)
    notes: Optional[str] = None


class ExamRegistrationResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    student_phone: Optional[str] = None
    exam_schedule_id: int
    exam_date: Optional[date] = None
    exam_type: Optional[str] = None
    venue_name: Optional[str] = None
    exam_result: str
    exam_score: Optional[Decimal] = None
    notes: Optional[str] = None
    registration_date: datetime


class SubjectProgress(BaseModel):
    subject: str
    status: str
    total_count: int
    failed_count: int
    pass_date: Optional[date] = None


class ExamResultResponse(BaseModel):
    """Registration after result entry, with the progress it produced."""

    registration: ExamRegistrationResponse
    subject_progress: SubjectProgress
    total_progress: int
    exam_qualification: str
    warnings: List[str] = []
