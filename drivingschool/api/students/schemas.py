"""Student schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import EnrollmentStatus


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    id_card: str = Field(..., min_length=18, max_length=18)
    phone: str = Field(..., min_length=1, max_length=20)
    gender: str = Field(..., min_length=1, max_length=10)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    enrollment_status: EnrollmentStatus = EnrollmentStatus.CONSULTING
    enrollment_date: Optional[date] = None
    coach_name: Optional[str] = None
    coach_subject2_name: Optional[str] = None
    coach_subject3_name: Optional[str] = None
    class_type_id: Optional[int] = None
    license_type: str = "C1"
    remarks: Optional[str] = None


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    id_card: Optional[str] = Field(None, min_length=18, max_length=18)
    phone: Optional[str] = Field(None, min_length=1, max_length=20)
    gender: Optional[str] = Field(None, min_length=1, max_length=10)
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    enrollment_status: Optional[EnrollmentStatus] = None
    enrollment_date: Optional[date] = None
    coach_name: Optional[str] = None
    coach_subject2_name: Optional[str] = None
    coach_subject3_name: Optional[str] = None
    class_type_id: Optional[int] = None
    license_type: Optional[str] = None
    remarks: Optional[str] = None


class StudentResponse(BaseModel):
    id: int
    name: str
    id_card: str
    phone: str
    gender: str
    birth_date: Optional[date] = None
    age: Optional[int] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    enrollment_status: str
    enrollment_date: Optional[date] = None
    coach_name: Optional[str] = None
    coach_subject2_name: Optional[str] = None
    coach_subject3_name: Optional[str] = None
    class_type_id: Optional[int] = None
    class_type_name: Optional[str] = None
    license_type: str
    contract_amount: Decimal
    actual_amount: Decimal
    discount_amount: Decimal
    debt_amount: Decimal
    payable_amount: Decimal
    payment_status: str
    registrar_id: Optional[int] = None
    registrar_name: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime
