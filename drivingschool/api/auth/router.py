from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.dependencies import get_app_settings, get_current_user
from drivingschool.auth.schemas import CurrentUser, LoginRequest, LoginResponse, UserInfo
from drivingschool.auth.services import get_user_info, login_user
from drivingschool.core.config import Settings
from drivingschool.core.exceptions import ServiceError
from drivingschool.core.schemas import ApiResponse
from drivingschool.db.session import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse[LoginResponse])
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> ApiResponse[LoginResponse]:
    try:
        result = await login_user(db, settings, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return ApiResponse(message="登录成功", data=result)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    payload = LoginRequest(username=form_data.username.strip(), password=form_data.password)
    try:
        result = await login_user(db, settings, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"access_token": result.token, "token_type": "bearer"}


@router.get("/me", response_model=ApiResponse[UserInfo])
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ApiResponse[UserInfo]:
    try:
        return ApiResponse(data=await get_user_info(db, current_user.id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
