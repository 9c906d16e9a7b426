"""
CRUD for the catalogue tables administrators maintain: sections, grade levels
and strands. The three share the same shape, so every function takes the
model class to operate on.
"""

from typing import Sequence, TypeVar

import structlog
from sqlalchemy import Select, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateNameError, NotFoundError
from app.models.grade_level_model import GradeLevelModel
from app.models.section_model import SectionModel
from app.models.strand_model import StrandModel
from app.schemas.catalog_schema import CatalogBase, CatalogFilters
from app.schemas.common_schema import Pagination
from app.utils.pagination import paginate
from app.utils.search import LIKE_ESCAPE, contains_pattern

logger = structlog.get_logger()

CatalogModel = TypeVar("CatalogModel", SectionModel, GradeLevelModel, StrandModel)

RESOURCE_LABELS = {
    SectionModel: "Section",
    GradeLevelModel: "Grade level",
    StrandModel: "Strand",
}


def live_entries(model: type[CatalogModel]) -> Select:
    return select(model).where(model.deleted_at.is_(None))


def apply_filters(
    model: type[CatalogModel], query: Select, filters: CatalogFilters
) -> Select:
    if filters.search:
        term = contains_pattern(filters.search)
        query = query.where(
            or_(
                model.name.ilike(term, escape=LIKE_ESCAPE),
                model.description.ilike(term, escape=LIKE_ESCAPE),
            )
        )
    # Strands have no active flag
    if filters.is_active is not None and hasattr(model, "is_active"):
        query = query.where(model.is_active.is_(filters.is_active))
    return query


async def list_entries(
    db: AsyncSession,
    model: type[CatalogModel],
    filters: CatalogFilters,
    page: int,
    limit: int,
) -> tuple[Sequence[CatalogModel], Pagination]:
    query = apply_filters(model, live_entries(model), filters).order_by(
        model.created_at.desc(), model.id.desc()
    )
    return await paginate(db, query, page, limit)


async def get_entry(
    db: AsyncSession, model: type[CatalogModel], entry_id: int
) -> CatalogModel:
    result = await db.execute(live_entries(model).where(model.id == entry_id))
    entry = result.scalar_one_or_none()
    if entry is None:
        label = RESOURCE_LABELS[model]
        raise NotFoundError(f"{label} not found", resource_type=model.__tablename__)
    return entry


async def _ensure_name_available(
    db: AsyncSession,
    model: type[CatalogModel],
    name: str,
    exclude_id: int | None = None,
) -> None:
    query = live_entries(model).where(model.name == name)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query.limit(1))).first() is not None:
        raise DuplicateNameError(name)


async def create_entry(
    db: AsyncSession, model: type[CatalogModel], data: CatalogBase
) -> CatalogModel:
    await _ensure_name_available(db, model, data.name)

    entry = model(**data.model_dump())
    db.add(entry)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateNameError(data.name)
    await db.refresh(entry)

    logger.info("Catalogue entry created", table=model.__tablename__, entry_id=entry.id)
    return entry


async def update_entry(
    db: AsyncSession, model: type[CatalogModel], entry_id: int, data: CatalogBase
) -> CatalogModel:
    entry = await get_entry(db, model, entry_id)
    await _ensure_name_available(db, model, data.name, exclude_id=entry.id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(entry, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateNameError(data.name)
    await db.refresh(entry)

    logger.info("Catalogue entry updated", table=model.__tablename__, entry_id=entry.id)
    return entry


async def delete_entry(
    db: AsyncSession, model: type[CatalogModel], entry_id: int
) -> CatalogModel:
    entry = await get_entry(db, model, entry_id)
    entry.soft_delete()
    await db.commit()

    logger.info("Catalogue entry deleted", table=model.__tablename__, entry_id=entry.id)
    return entry
