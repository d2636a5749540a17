from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import SalaryStatus

Money = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


class SalaryMonthRequest(BaseModel):
    salary_month: str = Field(..., description="YYYY-MM")


class CoachSalaryUpdate(BaseModel):
    attendance_days: Optional[int] = Field(None, ge=0, le=31)
    bonus: Optional[Money] = None
    deduction: Optional[Money] = None
    deduction_reason: Optional[str] = Field(None, max_length=255)
    net_salary: Optional[Decimal] = Field(None, max_digits=12, decimal_places=2)
    status: Optional[SalaryStatus] = None
    remarks: Optional[str] = None


class CoachSalaryResponse(BaseModel):
    id: int
    coach_id: int
    coach_name: str
    salary_month: str
    attendance_days: int
    base_salary: Decimal
    subject2_pass_count: int
    subject2_commission: Decimal
    subject3_pass_count: int
    subject3_commission: Decimal
    new_student_count: int
    recruitment_commission: Decimal
    bonus: Decimal
    deduction: Decimal
    deduction_reason: Optional[str] = None
    gross_salary: Decimal
    net_salary: Optional[Decimal] = None
    status: str
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GenerateResult(BaseModel):
    generated: int


class RefreshResult(BaseModel):
    refreshed: int


class BatchDeleteResult(BaseModel):
    deleted: int
