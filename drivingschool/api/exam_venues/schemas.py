from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ExamVenueCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = None
    capacity: int = Field(0, ge=0)
    is_active: bool = True


class ExamVenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ExamVenueResponse(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    capacity: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
