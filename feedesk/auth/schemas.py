from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feedesk.core.enums import UserRole


class LoginRequest(BaseModel):
    username: str
    password: str


class UserInfo(BaseModel):
    id: UUID
    username: str
    role: UserRole
    class_name: Optional[str] = None
    division: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserInfo
    issued_at: datetime


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=4)


class ResetPasswordRequest(BaseModel):
    new_password: str = Field(..., min_length=4)


class CurrentUser(BaseModel):
    """Authenticated user resolved from the access token.
    Teachers carry the class/division they are allowed to work with.
    """

    id: UUID
    username: str
    role: UserRole
    class_name: Optional[str] = None
    division: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
