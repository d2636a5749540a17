"""Payments router: payment, refund, discount, record deletion, debts, statistics."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.rbac import check_permission
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse, ListData
from drivingschool.db.session import get_db

from .schemas import (
    DebtStudentResponse,
    DiscountCreate,
    PaymentCreate,
    PaymentRecordResponse,
    PaymentResult,
    PaymentStatistics,
    RefundCreate,
)
from . import service

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.get(
    "/debts",
    response_model=ApiResponse[ListData[DebtStudentResponse]],
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def list_debts(
    keyword: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ListData[DebtStudentResponse]]:
    return ApiResponse(data=await service.list_debts(db, keyword, limit, offset))


@router.get(
    "/student/{student_id}",
    response_model=ApiResponse[List[PaymentRecordResponse]],
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def list_student_records(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[PaymentRecordResponse]]:
    try:
        return ApiResponse(data=await service.list_student_records(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/statistics/{student_id}",
    response_model=ApiResponse[PaymentStatistics],
    dependencies=[Depends(check_permission("payments", "read"))],
)
async def get_statistics(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentStatistics]:
    try:
        return ApiResponse(data=await service.get_statistics(db, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=ApiResponse[PaymentResult],
    dependencies=[Depends(check_permission("payments", "create"))],
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResult]:
    try:
        data = await service.record_payment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="缴费记录创建成功", data=data)


@router.post(
    "/refund",
    response_model=ApiResponse[PaymentResult],
    dependencies=[Depends(check_permission("payments", "create"))],
)
async def refund(
    payload: RefundCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResult]:
    try:
        data = await service.refund(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="退费成功", data=data)


@router.post(
    "/discount",
    response_model=ApiResponse[PaymentResult],
    dependencies=[Depends(check_permission("payments", "create"))],
)
async def add_discount(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResult]:
    try:
        data = await service.add_discount(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="减免成功", data=data)


@router.delete(
    "/{record_id}",
    response_model=ApiResponse[PaymentResult],
    dependencies=[Depends(check_permission("payments", "delete"))],
)
async def delete_payment_record(
    record_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResult]:
    try:
        data = await service.delete_payment_record(db, record_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="缴费记录删除成功", data=data)
