"""
Routers for sections, grade levels and strands.

The three catalogues behave identically, so one factory builds a router per
model from its create, response and envelope schemas.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Query

from app.models.grade_level_model import GradeLevelModel
from app.models.section_model import SectionModel
from app.models.strand_model import StrandModel
from app.schemas.catalog_schema import (
    CatalogFilters,
    GradeLevelCreate,
    GradeLevelEnvelope,
    GradeLevelListResponse,
    GradeLevelResponse,
    SectionCreate,
    SectionEnvelope,
    SectionListResponse,
    SectionResponse,
    StrandCreate,
    StrandEnvelope,
    StrandListResponse,
    StrandResponse,
)
from app.schemas.common_schema import Envelope
from app.services import catalog_service
from app.utils.deps import DB, AdminUser, CurrentUser
from app.utils.pagination import clamp_limit

logger = structlog.get_logger()


def build_catalog_router(
    model,
    create_schema,
    response_schema,
    list_schema,
    envelope_schema,
    plural_key: str,
    singular_key: str,
    label: str,
) -> APIRouter:
    router = APIRouter()

    @router.get("", response_model=list_schema)
    async def list_entries(
        db: DB,
        _: CurrentUser,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        page: int = Query(1, ge=1),
        limit: Optional[int] = Query(None, ge=1),
    ):
        entries, pagination = await catalog_service.list_entries(
            db,
            model,
            CatalogFilters(search=search, is_active=is_active),
            page,
            clamp_limit(limit),
        )
        return list_schema(
            **{plural_key: [response_schema.model_validate(e) for e in entries]},
            pagination=pagination,
        )

    @router.get("/{entry_id}", response_model=envelope_schema)
    async def get_entry(entry_id: int, db: DB, _: CurrentUser):
        entry = await catalog_service.get_entry(db, model, entry_id)
        return envelope_schema(**{singular_key: response_schema.model_validate(entry)})

    @router.post("", response_model=envelope_schema, status_code=201)
    async def create_entry(db: DB, _: AdminUser, data: create_schema = Body(...)):
        entry = await catalog_service.create_entry(db, model, data)
        return envelope_schema(
            message=f"{label} created successfully",
            **{singular_key: response_schema.model_validate(entry)},
        )

    @router.put("/{entry_id}", response_model=envelope_schema)
    async def update_entry(
        entry_id: int, db: DB, _: AdminUser, data: create_schema = Body(...)
    ):
        entry = await catalog_service.update_entry(db, model, entry_id, data)
        return envelope_schema(
            message=f"{label} updated successfully",
            **{singular_key: response_schema.model_validate(entry)},
        )

    @router.delete("/{entry_id}", response_model=Envelope)
    async def delete_entry(entry_id: int, db: DB, _: AdminUser):
        await catalog_service.delete_entry(db, model, entry_id)
        return Envelope(message=f"{label} deleted successfully")

    return router


sections_router = build_catalog_router(
    SectionModel,
    SectionCreate,
    SectionResponse,
    SectionListResponse,
    SectionEnvelope,
    "sections",
    "section",
    "Section",
)

grade_levels_router = build_catalog_router(
    GradeLevelModel,
    GradeLevelCreate,
    GradeLevelResponse,
    GradeLevelListResponse,
    GradeLevelEnvelope,
    "grade_levels",
    "grade_level",
    "Grade level",
)

strands_router = build_catalog_router(
    StrandModel,
    StrandCreate,
    StrandResponse,
    StrandListResponse,
    StrandEnvelope,
    "strands",
    "strand",
    "Strand",
)
