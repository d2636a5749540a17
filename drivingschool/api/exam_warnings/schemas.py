from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ExamWarningResponse(BaseModel):
    id: int
    student_id: int
    student_name: Optional[str] = None
    student_phone: Optional[str] = None
    warning_type: str
    warning_subject: str
    warning_content: str
    is_handled: bool
    handled_by: Optional[int] = None
    handler_name: Optional[str] = None
    handled_time: Optional[datetime] = None
    handled_notes: Optional[str] = None
    created_at: datetime


class WarningStatistics(BaseModel):
    warning_3_count: int
    warning_4_count: int
    disqualified_count: int
    total_unhandled: int
    total_handled: int


class WarningHandle(BaseModel):
    handled_notes: Optional[str] = None


class WarningBatchHandle(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    handled_notes: Optional[str] = None


class BatchHandleResult(BaseModel):
    handled: int
