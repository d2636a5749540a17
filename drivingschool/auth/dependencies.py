from typing import Dict

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drivingschool.auth.models import Role, User
from drivingschool.auth.schemas import CurrentUser
from drivingschool.auth.security import decode_access_token
from drivingschool.core.config import Settings
from drivingschool.core.enums import UserStatus
from drivingschool.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login-oauth")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> CurrentUser:
    """Resolve the authenticated user and their role permissions from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="无效的认证令牌",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(settings, token)
    except JWTError:
        raise credentials_exception

    user_id = payload.get("id")
    if not isinstance(user_id, int):
        raise credentials_exception

    user = await db.get(User, user_id)
    if not user or user.status != UserStatus.ACTIVE.value:
        raise credentials_exception

    role_result = await db.execute(select(Role).where(Role.name == user.role))
    role = role_result.scalar_one_or_none()

    permissions: Dict[str, Dict[str, bool]] = {}
    if role and role.permissions:
        permissions = role.permissions

    return CurrentUser(
        id=user.id,
        username=user.username,
        real_name=user.real_name,
        role=user.role,
        permissions=permissions,
    )
