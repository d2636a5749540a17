"""Exam registrations router: admission, result entry, deletion."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import ExamRegistrationCreate, ExamRegistrationResponse, ExamResultResponse, ExamResultUpdate
from . import service

router = APIRouter(prefix="/api/exam-registrations", tags=["exam-registrations"])


@router.get(
    "",
    response_model=ApiResponse[ListData[ExamRegistrationResponse]],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def list_registrations(
    student_id: Optional[int] = None,
    exam_schedule_id: Optional[int] = None,
    exam_result: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[ExamRegistrationResponse]]:
    data = await service.list_registrations(db, student_id, exam_schedule_id, exam_result, limit, offset)
    return ApiResponse(data=data)


@router.get(
    "/{registration_id}",
    response_model=ApiResponse[ExamRegistrationResponse],
    dependencies=[Depends(check_permission("exams", "read"))],
)
async def get_registration(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamRegistrationResponse]:
    try:
        return ApiResponse(data=await service.get_registration(db, registration_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[ExamRegistrationResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("exams", "create"))],
)
async def create_registration(
    payload: ExamRegistrationCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamRegistrationResponse]:
    try:
        data = await service.create_registration(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="考试报名成功", data=data)


@router.put(
    "/{registration_id}/result",
    response_model=ApiResponse[ExamResultResponse],
    dependencies=[Depends(check_permission("exams", "update"))],
)
async def record_result(
    registration_id: int,
    payload: ExamResultUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ExamResultResponse]:
    try:
        data = await service.record_result(db, registration_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="更新考试结果成功", data=data)


@router.delete(
    "/{registration_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("exams", "delete"))],
)
async def delete_registration(
    registration_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    try:
        await service.delete_registration(db, registration_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="删除考试报名成功")
