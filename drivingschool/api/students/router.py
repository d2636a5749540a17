from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.dependencies import get_current_user
from drivingschool.auth.rbac import check_permission
from drivingschool.auth.schemas import CurrentUser
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import StudentCreate, StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/students", tags=["students"])


@router.get(
    "",
    response_model=ApiResponse[ListData[StudentResponse]],
    dependencies=[Depends(check_permission("students", "read"))],
)
async def list_students(
    keyword: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    coach_name: Optional[str] = None,
    enrollment_date_start: Optional[date] = None,
    enrollment_date_end: Optional[date] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[StudentResponse]]:
    data = await service.list_students(
        db,
        keyword,
        status_filter,
        coach_name,
        enrollment_date_start,
        enrollment_date_end,
        limit,
        offset,
        sort_by,
        sort_order,
    )
    return ApiResponse(data=data)


@router.get(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
    dependencies=[Depends(check_permission("students", "read"))],
)
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentResponse]:
    try:
        return ApiResponse(data=await service.get_student(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("students", "create"))],
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[StudentResponse]:
    try:
        data = await service.create_student(db, payload, registrar=current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="创建学员成功", data=data)


@router.put(
    "/{student_id}",
    response_model=ApiResponse[StudentResponse],
    dependencies=[Depends(check_permission("students", "update"))],
)
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentResponse]:
    try:
        data = await service.update_student(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="更新学员信息成功", data=data)


@router.delete(
    "/{student_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("students", "delete"))],
)
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    try:
        await service.delete_student(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="删除学员成功")
