from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import CoachStatus


class CoachCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    id_card: str = Field(..., min_length=18, max_length=18)
    phone: str = Field(..., min_length=1, max_length=20)
    gender: str = Field(..., min_length=1, max_length=10)
    license_type: Optional[str] = None
    teaching_certificate: Optional[str] = None
    teaching_subjects: Optional[str] = None
    employment_date: Optional[date] = None
    status: CoachStatus = CoachStatus.ACTIVE
    remarks: Optional[str] = None


class CoachUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    id_card: Optional[str] = Field(None, min_length=18, max_length=18)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    gender: Optional[str] = Field(None, min_length=1, max_length=10)
    license_type: Optional[str] = None
    teaching_certificate: Optional[str] = None
    teaching_subjects: Optional[str] = None
    employment_date: Optional[date] = None
    status: Optional[CoachStatus] = None
    remarks: Optional[str] = None


class CoachResponse(BaseModel):
    id: int
    name: str
    id_card: str
    phone: str
    gender: Optional[str] = None
    license_type: Optional[str] = None
    teaching_certificate: Optional[str] = None
    teaching_subjects: Optional[str] = None
    employment_date: Optional[date] = None
    status: str
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
