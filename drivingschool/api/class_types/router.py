"""Class types router: CRUD, enabled list, price history."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.dependencies import get_current_user
from drivingschool.auth.rbac import check_permission
from drivingschool.auth.schemas import CurrentUser
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import (
    ClassTypeCreate,
    ClassTypeResponse,
    ClassTypeUpdate,
    ClassTypeUpdateResponse,
    PriceHistoryList,
)
from . import service

router = APIRouter(prefix="/api/class-types", tags=["class-types"])


@router.get(
    "",
    response_model=ApiResponse[ListData[ClassTypeResponse]],
    dependencies=[Depends(check_permission("class_types", "read"))],
)
async def list_class_types(
    keyword: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query("desc", alias="sortOrder"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[ClassTypeResponse]]:
    data = await service.list_class_types(db, keyword, status_filter, limit, offset, sort_by, sort_order)
    return ApiResponse(data=data)


@router.get(
    "/list/enabled",
    response_model=ApiResponse[List[ClassTypeResponse]],
    dependencies=[Depends(check_permission("class_types", "read"))],
)
async def list_enabled_class_types(
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[ClassTypeResponse]]:
    return ApiResponse(data=await service.list_enabled_class_types(db))


@router.get(
    "/{class_type_id}",
    response_model=ApiResponse[ClassTypeResponse],
    dependencies=[Depends(check_permission("class_types", "read"))],
)
async def get_class_type(
    class_type_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassTypeResponse]:
    try:
        return ApiResponse(data=await service.get_class_type(db, class_type_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{class_type_id}/price-history",
    response_model=ApiResponse[PriceHistoryList],
    dependencies=[Depends(check_permission("class_types", "read"))],
)
async def get_price_history(
    class_type_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PriceHistoryList]:
    try:
        return ApiResponse(data=await service.get_price_history(db, class_type_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[ClassTypeResponse],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("class_types", "create"))],
)
async def create_class_type(
    payload: ClassTypeCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassTypeResponse]:
    try:
        data = await service.create_class_type(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="班型创建成功", data=data)


@router.put(
    "/{class_type_id}",
    response_model=ApiResponse[ClassTypeUpdateResponse],
    dependencies=[Depends(check_permission("class_types", "update"))],
)
async def update_class_type(
    class_type_id: int,
    payload: ClassTypeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[ClassTypeUpdateResponse]:
    try:
        data = await service.update_class_type(db, class_type_id, payload, current_user.username)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="班型更新成功", data=data)


@router.delete(
    "/{class_type_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(check_permission("class_types", "delete"))],
)
async def delete_class_type(
    class_type_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    try:
        await service.delete_class_type(db, class_type_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="班型删除成功")
