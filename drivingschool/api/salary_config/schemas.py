from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, Field, model_validator

from drivingschool.core.enums import SalaryConfigType

Rate = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


class SalaryConfigCreate(BaseModel):
    config_name: str = Field(..., min_length=1, max_length=100)
    config_type: SalaryConfigType
    amount: Rate
    effective_date: date
    expiry_date: Optional[date] = None
    remarks: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self) -> "SalaryConfigCreate":
        if self.expiry_date is not None and self.expiry_date < self.effective_date:
            raise ValueError("失效日期不能早于生效日期")
        return self


class SalaryConfigUpdate(BaseModel):
    config_name: Optional[str] = Field(None, min_length=1, max_length=100)
    config_type: Optional[SalaryConfigType] = None
    amount: Optional[Rate] = None
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    remarks: Optional[str] = None


class SalaryConfigResponse(BaseModel):
    id: int
    config_name: str
    config_type: str
    amount: Decimal
    effective_date: date
    expiry_date: Optional[date] = None
    remarks: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
