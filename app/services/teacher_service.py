from typing import Sequence

import structlog
from fastapi import UploadFile
from sqlalchemy import Select, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateEmailError, NotFoundError
from app.models.teacher_model import TeacherModel
from app.schemas.common_schema import Pagination
from app.schemas.teacher_schema import TeacherCreate, TeacherFilters, TeacherUpdate
from app.services.storage import TEACHER_IMAGE_DIR, FileStorage
from app.utils.pagination import paginate
from app.utils.search import LIKE_ESCAPE, contains_pattern

logger = structlog.get_logger()


def apply_filters(query: Select, filters: TeacherFilters) -> Select:
    if filters.search:
        term = contains_pattern(filters.search)
        query = query.where(
            or_(
                TeacherModel.name.ilike(term, escape=LIKE_ESCAPE),
                TeacherModel.email.ilike(term, escape=LIKE_ESCAPE),
                TeacherModel.subject.ilike(term, escape=LIKE_ESCAPE),
            )
        )
    if filters.gender:
        query = query.where(TeacherModel.gender == filters.gender.value)
    return query


async def list_teachers(
    db: AsyncSession, filters: TeacherFilters, page: int, limit: int
) -> tuple[Sequence[TeacherModel], Pagination]:
    query = apply_filters(select(TeacherModel), filters).order_by(
        TeacherModel.created_at.desc(), TeacherModel.id.desc()
    )
    return await paginate(db, query, page, limit)


async def get_teacher(db: AsyncSession, teacher_id: int) -> TeacherModel:
    teacher = await db.get(TeacherModel, teacher_id)
    if teacher is None:
        raise NotFoundError("Teacher not found", resource_type="teacher")
    return teacher


async def _ensure_email_available(
    db: AsyncSession, email: str, exclude_id: int | None = None
) -> None:
    query = select(TeacherModel.id).where(TeacherModel.email == email)
    if exclude_id is not None:
        query = query.where(TeacherModel.id != exclude_id)
    if (await db.execute(query.limit(1))).first() is not None:
        raise DuplicateEmailError(email)


async def create_teacher(
    db: AsyncSession,
    data: TeacherCreate,
    storage: FileStorage,
    image: UploadFile | None = None,
) -> TeacherModel:
    await _ensure_email_available(db, data.email)

    image_path = None
    if image is not None:
        image_path = await storage.save(image, TEACHER_IMAGE_DIR, "image")

    teacher = TeacherModel(**data.model_dump(), image=image_path)
    db.add(teacher)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await storage.delete(image_path)
        raise DuplicateEmailError(data.email)
    await db.refresh(teacher)

    logger.info("Teacher created", teacher_id=teacher.id, has_image=bool(image_path))
    return teacher


async def update_teacher(
    db: AsyncSession,
    teacher_id: int,
    data: TeacherUpdate,
    storage: FileStorage,
    image: UploadFile | None = None,
) -> TeacherModel:
    teacher = await get_teacher(db, teacher_id)
    await _ensure_email_available(db, data.email, exclude_id=teacher.id)

    old_image = teacher.image
    new_image = None
    if image is not None:
        new_image = await storage.save(image, TEACHER_IMAGE_DIR, "image")
        teacher.image = new_image

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(teacher, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await storage.delete(new_image)
        raise DuplicateEmailError(data.email)
    await db.refresh(teacher)

    if new_image and old_image:
        await storage.delete(old_image)

    logger.info("Teacher updated", teacher_id=teacher.id, image_replaced=bool(new_image))
    return teacher


async def delete_teacher(
    db: AsyncSession, teacher_id: int, storage: FileStorage
) -> None:
    """Delete a teacher row and its stored image."""
    teacher = await get_teacher(db, teacher_id)
    image = teacher.image
    await db.delete(teacher)
    await db.commit()

    await storage.delete(image)
    logger.info("Teacher deleted", teacher_id=teacher_id)
