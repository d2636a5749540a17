"""Exam schedule schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import ExamSubject


class ExamScheduleCreate(BaseModel):
    exam_date: date
    exam_type: ExamSubject
    venue_id: int
    # Defaults to the venue's capacity
    capacity: Optional[int] = Field(None, ge=0)
    person_in_charge: Optional[str] = None
    notes: Optional[str] = None


class ExamScheduleUpdate(BaseModel):
    exam_date: Optional[date] = None
    exam_type: Optional[ExamSubject] = None
    venue_id: Optional[int] = None
    capacity: Optional[int] = Field(None, ge=0)
    person_in_charge: Optional[str] = None
    notes: Optional[str] = None


class ExamScheduleResponse(BaseModel):
    id: int
    exam_date: date
    exam_type: str
    venue_id: int
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    capacity: int
    arranged_count: int
    remaining: int
    person_in_charge: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PassRateItem(BaseModel):
    exam_type: str
    total_count: int
    pass_count: int
    pass_rate: Decimal
