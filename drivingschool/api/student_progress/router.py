from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.enums import ExamSubject
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import EligibilityResponse, ProgressOverview, StudentProgressResponse, WarningLevels
from . import service

router = APIRouter(prefix="/api/student-progress", tags=["student-progress"])


@router.get(
    "",
    response_model=ApiResponse[ListData[StudentProgressResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_progress(
    keyword: Optional[str] = None,
    subject1_status: Optional[str] = None,
    subject2_status: Optional[str] = None,
    subject3_status: Optional[str] = None,
    subject4_status: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[StudentProgressResponse]]:
    statuses = {
        ExamSubject.SUBJECT1: subject1_status,
        ExamSubject.SUBJECT2: subject2_status,
        ExamSubject.SUBJECT3: subject3_status,
        ExamSubject.SUBJECT4: subject4_status,
    }
    return ApiResponse(data=await service.list_progress(db, keyword, statuses, limit, offset))


@router.get(
    "/statistics/overview",
    response_model=ApiResponse[ProgressOverview],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_overview(db: AsyncSession = Depends(get_db)) -> ApiResponse[ProgressOverview]:
    return ApiResponse(data=await service.get_overview(db))


@router.get(
    "/student/{student_id}",
    response_model=ApiResponse[StudentProgressResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_student_progress(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentProgressResponse]:
    try:
        return ApiResponse(data=await service.get_student_progress(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/check-eligibility/{student_id}/{subject}",
    response_model=ApiResponse[EligibilityResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def check_eligibility(
    student_id: int,
    subject: str,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[EligibilityResponse]:
    try:
        return ApiResponse(data=await service.check_eligibility(db, student_id, subject))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{progress_id}/warnings",
    response_model=ApiResponse[WarningLevels],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_warning_levels(
    progress_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[WarningLevels]:
    return ApiResponse(data=await service.get_warning_levels(db, progress_id))
