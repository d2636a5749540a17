from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.dates import parse_month
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import SalaryConfigCreate, SalaryConfigResponse, SalaryConfigUpdate
from . import service

router = APIRouter(prefix="/api/salary-config", tags=["salary-config"])


@router.get(
    "",
    response_model=ApiResponse[ListData[SalaryConfigResponse]],
    dependencies=[Depends(check_permission("salary", "read"))],
)
async def list_configs(
    config_type: Optional[str] = None,
    keyword: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[SalaryConfigResponse]]:
    return ApiResponse(data=await service.list_configs(db, config_type, keyword, limit, offset))


@router.get(
    "/current",
    response_model=ApiResponse[List[SalaryConfigResponse]],
    dependencies=[Depends(check_permission("salary", "read"))],
)
async def get_current_configs(
    month: Optional[str] = Query(None, description="YYYY-MM; defaults to today"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[SalaryConfigResponse]]:
    if month:
        try:
            target, _ = parse_month(month)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="月份格式不正确，应为YYYY-MM")
    else:
        target = date.today()
    return ApiResponse(data=await service.get_current_configs(db, target))


@router.get(
    "/{config_id}",
    response_model=ApiResponse[SalaryConfigResponse],
    dependencies=[Depends(check_permission("salary", "read"))],
)
async def get_config(config_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[SalaryConfigResponse]:
    try:
        return ApiResponse(data=await service.get_config(db, config_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[SalaryConfigResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("salary", "create"))],
)
async def create_config(
    payload: SalaryConfigCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[SalaryConfigResponse]:
    data = await service.create_config(db, payload)
    return ApiResponse(message="工资配置创建成功", data=data)


@router.put(
    "/{config_id}",
    response_model=ApiResponse[SalaryConfigResponse],
    dependencies=[Depends(check_permission("salary", "update"))],
)
async def update_config(
    config_id: int,
    payload: SalaryConfigUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[SalaryConfigResponse]:
    try:
        data = await service.update_config(db, config_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="工资配置更新成功", data=data)


@router.delete(
    "/{config_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("salary", "delete"))],
)
async def delete_config(config_id: int, db: AsyncSession = Depends(get_db)) -> ApiResponse[None]:
    try:
        await service.delete_config(db, config_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="工资配置删除成功")
