from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import (
    BatchDeleteResult,
    CoachSalaryResponse,
    CoachSalaryUpdate,
    GenerateResult,
    RefreshResult,
    SalaryMonthRequest,
)
from . import service

router = APIRouter(prefix="/api/coach-salary", tags=["coach-salary"])


@router.get(
    "",
    response_model=ApiResponse[ListData[CoachSalaryResponse]],
    dependencies=[Depends(check_permission("salary", "read"))],
)
async def list_salaries(
    salary_month: Optional[str] = None,
    coach_name: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[CoachSalaryResponse]]:
    data = await service.list_salaries(
        db, salary_month, coach_name, status_filter, limit, offset, sort_by, sort_order
    )
    return ApiResponse(data=data)


@router.post(
    "/generate",
    response_model=ApiResponse[GenerateResult],
    dependencies=[Depends(check_permission("salary", "create"))],
)
async def generate_salaries(
    payload: SalaryMonthRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[GenerateResult]:
    try:
        data = await service.generate_salaries(db, payload.salary_month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message=f"成功生成 {data.generated} 条工资记录", data=data)


@router.post(
    "/refresh",
    response_model=ApiResponse[RefreshResult],
    dependencies=[Depends(check_permission("salary", "update"))],
)
async def refresh_salaries(
    payload: SalaryMonthRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[RefreshResult]:
    try:
        data = await service.refresh_salaries(db, payload.salary_month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message=f"成功刷新 {data.refreshed} 条工资记录", data=data)


@router.delete(
    "/batch",
    response_model=ApiResponse[BatchDeleteResult],
    dependencies=[Depends(check_permission("salary", "delete"))],
)
async def delete_month(
    salary_month: str = Query(...),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[BatchDeleteResult]:
    try:
        data = await service.delete_month(db, salary_month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message=f"成功删除 {data.deleted} 条工资记录", data=data)


@router.get(
    "/{salary_id}",
    response_model=ApiResponse[CoachSalaryResponse],
    dependencies=[Depends(check_permission("salary", "read"))],
)
async def get_salary(salary_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[CoachSalaryResponse]:
    try:
        return ApiResponse(data=await service.get_salary(db, salary_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put(
    "/{salary_id}",
    response_model=ApiResponse[CoachSalaryResponse],
    dependencies=[Depends(check_permission("salary", "update"))],
)
async def update_salary(
    salary_id: int,
    payload: CoachSalaryUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CoachSalaryResponse]:
    try:
        data = await service.update_salary(db, salary_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="工资记录更新成功", data=data)


@router.delete(
    "/{salary_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("salary", "delete"))],
)
async def delete_salary(salary_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[None]:
    try:
        await service.delete_salary(db, salary_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="工资记录删除成功")
