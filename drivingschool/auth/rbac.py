from typing import Dict

from fastapi import Depends, HTTPException, status

from drivingschool.auth.dependencies import get_current_user
from drivingschool.auth.schemas import CurrentUser

ADMIN_ROLE = "admin"


def check_permission(module: str, action: str):
    """
    Dependency factory to enforce a specific permission.

    Example:
        Depends(check_permission("payments", "create"))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> None:
        if current_user.role == ADMIN_ROLE:
            return
        permissions: Dict[str, Dict[str, bool]] = current_user.permissions or {}
        module_perms = permissions.get(module, {})
        if not module_perms.get(action, False):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="权限不足",
            )

    return _checker
