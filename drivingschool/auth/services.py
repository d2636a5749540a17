import logging
from typing import Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.models import User
from drivingschool.auth.schemas import LoginRequest, LoginResponse, UserInfo
from drivingschool.auth.security import create_access_token, verify_password
from drivingschool.core.config import Settings
from drivingschool.core.enums import UserStatus
from drivingschool.core.exceptions import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


async def login_user(db: AsyncSession, settings: Settings, payload: LoginRequest) -> LoginResponse:
    result = await db.execute(select(User).where(User.username == payload.username))
    user: Optional[User] = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", payload.username)
        raise ServiceError("用户名或密码错误", status.HTTP_401_UNAUTHORIZED)

    if user.status != UserStatus.ACTIVE.value:
        raise ServiceError("账号已被禁用", status.HTTP_403_FORBIDDEN)

    token = create_access_token(
        settings,
        subject={"id": user.id, "username": user.username, "role": user.role},
    )
    logger.info("User %s logged in", user.username)
    return LoginResponse(token=token, user=UserInfo.model_validate(user))


async def get_user_info(db: AsyncSession, user_id: int) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("用户不存在")
    return UserInfo.model_validate(user)
