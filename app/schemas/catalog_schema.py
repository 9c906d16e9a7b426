"""Schemas for the administrator-managed catalogues: sections, grade levels and strands."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common_schema import Envelope, Pagination


class CatalogBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


class CatalogFilters(BaseModel):
    search: Optional[str] = None
    is_active: Optional[bool] = None


# Sections


class SectionCreate(CatalogBase):
    is_active: bool = True


class SectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class SectionListResponse(Envelope):
    sections: list[SectionResponse]
    pagination: Pagination


class SectionEnvelope(Envelope):
    section: SectionResponse


# Grade levels


class GradeLevelCreate(CatalogBase):
    is_active: bool = True


class GradeLevelResponse(SectionResponse):
    pass


class GradeLevelListResponse(Envelope):
    grade_levels: list[GradeLevelResponse]
    pagination: Pagination


class GradeLevelEnvelope(Envelope):
    grade_level: GradeLevelResponse


# Strands


class StrandCreate(CatalogBase):
    pass


class StrandResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class StrandListResponse(Envelope):
    strands: list[StrandResponse]
    pagination: Pagination


class StrandEnvelope(Envelope):
    strand: StrandResponse
