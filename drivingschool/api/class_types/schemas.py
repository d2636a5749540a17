"""Class type schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from drivingschool.core.enums import ClassTypeStatus


class ClassTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    contract_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None
    status: ClassTypeStatus = ClassTypeStatus.ENABLED


class ClassTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    contract_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None
    status: Optional[ClassTypeStatus] = None
    price_change_notes: Optional[str] = None


class ClassTypeResponse(BaseModel):
    id: int
    name: str
    contract_amount: Decimal
    description: Optional[str] = None
    status: str
    student_count: int = 0
    created_at: datetime
    updated_at: datetime


class ClassTypeUpdateResponse(BaseModel):
    class_type: ClassTypeResponse
    price_changed: bool
    old_price: Decimal
    new_price: Decimal


class PriceHistoryResponse(BaseModel):
    id: int
    class_type_id: int
    contract_amount: Decimal
    effective_date: datetime
    created_by: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class PriceHistoryList(BaseModel):
    class_type_id: int
    current_price: Decimal
    history: List[PriceHistoryResponse]
