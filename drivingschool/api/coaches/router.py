from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import CoachCreate, CoachResponse, CoachUpdate
from . import service

router = APIRouter(prefix="/api/coaches", tags=["coaches"])


@router.get(
    "",
    response_model=ApiResponse[ListData[CoachResponse]],
    dependencies=[Depends(check_permission("coaches", "read"))],
)
async def list_coaches(
    keyword: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    teaching_subjects: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[CoachResponse]]:
    data = await service.list_coaches(
        db, keyword, status_filter, teaching_subjects, limit, offset, sort_by, sort_order
    )
    return ApiResponse(data=data)


@router.get(
    "/list/active",
    response_model=ApiResponse[List[CoachResponse]],
    dependencies=[Depends(check_permission("coaches", "read"))],
)
async def list_active_coaches(db: AsyncSession = Depends(get_db)) -> ApiResponse[List[CoachResponse]]:
    return ApiResponse(data=await service.list_active_coaches(db))


@router.get(
    "/{coach_id}",
    response_model=ApiResponse[CoachResponse],
    dependencies=[Depends(check_permission("coaches", "read"))],
)
async def get_coach(coach_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[CoachResponse]:
    try:
        return ApiResponse(data=await service.get_coach(db, coach_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[CoachResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("coaches", "create"))],
)
async def create_coach(payload: CoachCreate, db: AsyncSession = Depends(get_db)) -> ApiResponse[CoachResponse]:
    try:
        data = await service.create_coach(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="创建教练成功", data=data)


@router.put(
    "/{coach_id}",
    response_model=ApiResponse[CoachResponse],
    dependencies=[Depends(check_permission("coaches", "update"))],
)
async def update_coach(
    coach_id: int,
    payload: CoachUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CoachResponse]:
    try:
        data = await service.update_coach(db, coach_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="更新教练信息成功", data=data)


@router.delete(
    "/{coach_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("coaches", "delete"))],
)
async def delete_coach(coach_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[None]:
    try:
        await service.delete_coach(db, coach_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="删除教练成功")
