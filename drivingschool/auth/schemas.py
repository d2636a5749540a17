from typing import Dict, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1)


class UserInfo(BaseModel):
    id: int
    username: str
    real_name: Optional[str] = None
    role: str

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserInfo


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for permission checks."""

    id: int
    username: str
    real_name: Optional[str] = None
    role: str
    permissions: Dict[str, Dict[str, bool]]

    @property
    def display_name(self) -> str:
        return self.real_name or self.username
