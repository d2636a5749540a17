from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.dependencies import get_current_user
from drivingschool.auth.rbac import check_permission
from drivingschool.auth.schemas import CurrentUser
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import BatchHandleResult, ExamWarningResponse, WarningBatchHandle, WarningHandle, WarningStatistics
from . import service

router = APIRouter(prefix="/api/exam-warnings", tags=["exam-warnings"])


@router.get(
    "",
    response_model=ApiResponse[ListData[ExamWarningResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_warnings(
    student_id: Optional[int] = None,
    warning_type: Optional[str] = None,
    warning_subject: Optional[str] = None,
    is_handled: Optional[bool] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[ExamWarningResponse]]:
    data = await service.list_warnings(
        db, student_id, warning_type, warning_subject, is_handled, limit, offset
    )
    return ApiResponse(data=data)


@router.get(
    "/statistics",
    response_model=ApiResponse[WarningStatistics],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_statistics(db: AsyncSession = Depends(get_db)) -> ApiResponse[WarningStatistics]:
    return ApiResponse(data=await service.get_statistics(db))


@router.put(
    "/batch/handle",
    response_model=ApiResponse[BatchHandleResult],
    dependencies=[Depends(check_permission("exams", "update"))],
)
async def handle_warnings_batch(
    payload: WarningBatchHandle,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[BatchHandleResult]:
    data = await service.handle_warnings_batch(db, payload, current_user)
    return ApiResponse(message="批量标记预警已处理成功", data=data)


@router.get(
    "/{warning_id}",
    response_model=ApiResponse[ExamWarningResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_warning(warning_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[ExamWarningResponse]:
    try:
        return ApiResponse(data=await service.get_warning(db, warning_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{warning_id}/handle",
    response_model=ApiResponse[ExamWarningResponse],
    dependencies=[Depends(check_permission("exams", "update"))],
)
async def handle_warning(
    warning_id: int,
    payload: WarningHandle,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ExamWarningResponse]:
    try:
        data = await service.handle_warning(db, warning_id, payload, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="标记预警已处理成功", data=data)
