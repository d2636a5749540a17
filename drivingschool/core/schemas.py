"""Response envelope shared by every route."""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int


class ListData(BaseModel, Generic[T]):
    """Normalized list payload: data = {"list": [...], "pagination": {...}}."""

    list: List[T]
    pagination: Pagination


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
