from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.enums import Gender, GradeLevel, Strand
from app.schemas.common_schema import Envelope, Pagination


class StudentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    gender: Gender
    grade_level: GradeLevel
    strand: Strand
    section: str = Field(..., min_length=1, max_length=255)
    subject: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=255)
    birth_date: Optional[date] = None
    guardian_name: Optional[str] = Field(None, max_length=255)
    guardian_phone: Optional[str] = Field(None, max_length=20)
    guardian_relationship: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    is_active: bool = True


class StudentCreate(StudentBase):
    pass


class StudentUpdate(StudentBase):
    pass


class StudentFilters(BaseModel):
    search: Optional[str] = None
    grade_level: Optional[GradeLevel] = None
    strand: Optional[Strand] = None
    is_active: Optional[bool] = None


class StudentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    gender: str
    grade_level: str
    strand: str
    section: str
    subject: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    guardian_name: Optional[str] = None
    guardian_phone: Optional[str] = None
    guardian_relationship: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    avatar: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class StudentListResponse(Envelope):
    students: list[StudentResponse]
    pagination: Pagination


class StudentEnvelope(Envelope):
    student: StudentResponse
