"""Payment schemas: payments, refunds, discounts and the student balance they move."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field

Amount = Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=2)]


class PaymentCreate(BaseModel):
    student_id: int
    amount: Amount
    payment_date: date
    payment_method: str = Field(..., min_length=1, max_length=20)
    operator: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = None


class RefundCreate(BaseModel):
    student_id: int
    amount: Amount
    operator: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = None


class DiscountCreate(BaseModel):
    student_id: int
    amount: Amount
    operator: str = Field(..., min_length=1, max_length=50)
    notes: Optional[str] = None


class PaymentRecordResponse(BaseModel):
    id: int
    student_id: int
    record_type: str
    amount: Decimal
    payment_date: date
    payment_method: str
    operator: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StudentBalance(BaseModel):
    """Financial state of a student after an operation."""

    student_id: int
    contract_amount: Decimal
    actual_amount: Decimal
    discount_amount: Decimal
    debt_amount: Decimal
    payment_status: str
    enrollment_status: str


class PaymentResult(BaseModel):
    record: Optional[PaymentRecordResponse] = None
    balance: StudentBalance


class DebtStudentResponse(BaseModel):
    id: int
    name: str
    phone: str
    id_card: str
    class_type_name: Optional[str] = None
    contract_amount: Decimal
    actual_amount: Decimal
    discount_amount: Decimal
    debt_amount: Decimal
    payment_status: str
    enrollment_date: Optional[date] = None


class LastPayment(BaseModel):
    payment_date: date
    amount: Decimal


class PaymentStatistics(BaseModel):
    student_id: int
    name: str
    class_type_name: Optional[str] = None
    balance: StudentBalance
    payment_count: int
    last_payment: Optional[LastPayment] = None
