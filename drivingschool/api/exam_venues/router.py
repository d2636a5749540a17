from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import ExamVenueCreate, ExamVenueResponse, ExamVenueUpdate
from . import service

router = APIRouter(prefix="/api/exam-venues", tags=["exam-venues"])


@router.get(
    "",
    response_model=ApiResponse[ListData[ExamVenueResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_venues(
    keyword: Optional[str] = None,
    is_active: Optional[bool] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[ExamVenueResponse]]:
    return ApiResponse(data=await service.list_venues(db, keyword, is_active, limit, offset))


@router.get(
    "/list/active",
    response_model=ApiResponse[List[ExamVenueResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_active_venues(db: AsyncSession = Depends(get_db)) -> ApiResponse[List[ExamVenueResponse]]:
    return ApiResponse(data=await service.list_active_venues(db))


@router.get(
    "/{venue_id}",
    response_model=ApiResponse[ExamVenueResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_venue(venue_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[ExamVenueResponse]:
    try:
        return ApiResponse(data=await service.get_venue(db, venue_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[ExamVenueResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("exams", "create"))],
)
async def create_venue(
    payload: ExamVenueCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamVenueResponse]:
    try:
        data = await service.create_venue(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="创建考试场地成功", data=data)


@router.put(
    "/{venue_id}",
    response_model=ApiResponse[ExamVenueResponse],
    dependencies=[Depends(check_permission("exams", "update"))],
)
async def update_venue(
    venue_id: int,
    payload: ExamVenueUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamVenueResponse]:
    try:
        data = await service.update_venue(db, venue_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="更新考试场地成功", data=data)


@router.delete(
    "/{venue_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("exams", "delete"))],
)
async def delete_venue(venue_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[None]:
    try:
        await service.delete_venue(db, venue_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="删除考试场地成功")
