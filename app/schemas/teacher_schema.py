from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import Gender
from app.schemas.common_schema import Envelope, Pagination


class TeacherBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=20)
    subject: str = Field(..., min_length=1, max_length=255)
    gender: Gender


class TeacherCreate(TeacherBase):
    pass


class TeacherUpdate(TeacherBase):
    pass


class TeacherFilters(BaseModel):
    search: Optional[str] = None
    gender: Optional[Gender] = None


class TeacherResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: str
    subject: str
    gender: str
    image: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class TeacherListResponse(Envelope):
    teachers: list[TeacherResponse]
    pagination: Pagination


class TeacherEnvelope(Envelope):
    teacher: TeacherResponse
