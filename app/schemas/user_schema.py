from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import UserRole
from app.schemas.common_schema import Envelope, Pagination


class UserBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: UserRole = UserRole.STUDENT


class UserCreate(UserBase):
    password: str = Field(..., min_length=6, max_length=72)


class UserUpdate(UserBase):
    password: Optional[str] = Field(None, min_length=6, max_length=72)


class UserFilters(BaseModel):
    search: Optional[str] = None
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserListResponse(Envelope):
    users: list[UserResponse]
    pagination: Pagination


class UserEnvelope(Envelope):
    user: UserResponse
