from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import GradeLevel, Strand, SubjectStatus
from app.schemas.common_schema import Envelope, Pagination


class SubjectBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    status: SubjectStatus = SubjectStatus.AVAILABLE
    grade_level: GradeLevel
    strand: Strand
    description: Optional[str] = Field(None, max_length=1000)


class SubjectCreate(SubjectBase):
    """Schema for creating a subject"""

    pass


class SubjectUpdate(SubjectBase):
    """Schema for replacing a subject's attributes"""

    pass


class SubjectFilters(BaseModel):
    search: Optional[str] = None
    grade_level: Optional[GradeLevel] = None
    strand: Optional[Strand] = None
    status: Optional[SubjectStatus] = None


class SubjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    status: str
    grade_level: str
    strand: str
    description: Optional[str] = None
    students_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None


class EnrolledStudent(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    grade_level: str
    strand: str
    enrolled_at: datetime


class SubjectDetail(SubjectResponse):
    students: list[EnrolledStudent] = Field(default_factory=list)


class EnrollmentRequest(BaseModel):
    """Body of the enroll and unenroll endpoints."""

    student_ids: list[int] = Field(..., min_length=1)


class SubjectListResponse(Envelope):
    subjects: list[SubjectResponse]
    pagination: Pagination


class SubjectEnvelope(Envelope):
    subject: SubjectResponse


class SubjectDetailEnvelope(Envelope):
    subject: SubjectDetail


class GradeLevelOptions(Envelope):
    grade_levels: list[str]


class StrandOptions(Envelope):
    strands: list[str]
