from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import ExamScheduleCreate, ExamScheduleResponse, ExamScheduleUpdate, PassRateItem
from . import service

router = APIRouter(prefix="/api/exam-schedules", tags=["exam-schedules"])


@router.get(
    "",
    response_model=ApiResponse[ListData[ExamScheduleResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_schedules(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    exam_type: Optional[str] = None,
    venue_id: Optional[int] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[ExamScheduleResponse]]:
    data = await service.list_schedules(db, start_date, end_date, exam_type, venue_id, limit, offset)
    return ApiResponse(data=data)


@router.get(
    "/statistics/pass-rate",
    response_model=ApiResponse[List[PassRateItem]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def pass_rate_statistics(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[PassRateItem]]:
    try:
        return ApiResponse(data=await service.pass_rate_statistics(db, year, month))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/monthly/{year}/{month}",
    response_model=ApiResponse[List[ExamScheduleResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_monthly_schedules(
    year: int,
    month: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[ExamScheduleResponse]]:
    try:
        return ApiResponse(data=await service.list_monthly_schedules(db, year, month))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{schedule_id}",
    response_model=ApiResponse[ExamScheduleResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_schedule(schedule_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[ExamScheduleResponse]:
    try:
        return ApiResponse(data=await service.get_schedule(db, schedule_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[ExamScheduleResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("exams", "create"))],
)
async def create_schedule(
    payload: ExamScheduleCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamScheduleResponse]:
    try:
        data = await service.create_schedule(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="创建考试安排成功", data=data)


@router.put(
    "/{schedule_id}",
    response_model=ApiResponse[ExamScheduleResponse],
    dependencies=[Depends(check_permission("exams", "update"))],
)
async def update_schedule(
    schedule_id: int,
    payload: ExamScheduleUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamScheduleResponse]:
    try:
        data = await service.update_schedule(db, schedule_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="更新考试安排成功", data=data)


@router.delete(
    "/{schedule_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("exams", "delete"))],
)
async def delete_schedule(schedule_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[None]:
    try:
        await service.delete_schedule(db, schedule_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="删除考试安排成功")
