from typing import Any, Sequence

import structlog
from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateCodeError, HasActiveEnrollmentsError, NotFoundError
from app.models.enrollment_model import SubjectStudentModel
from app.models.enums import GradeLevel, Strand, enum_values
from app.models.student_model import StudentModel
from app.models.subject_model import SubjectModel
from app.schemas.common_schema import Pagination
from app.schemas.subject_schema import SubjectCreate, SubjectFilters, SubjectUpdate
from app.utils.pagination import paginate
from app.utils.search import LIKE_ESCAPE, contains_pattern

logger = structlog.get_logger()


def live_subjects() -> Select:
    """Subjects that have not been soft deleted."""
    return select(SubjectModel).where(SubjectModel.deleted_at.is_(None))


def apply_filters(query: Select, filters: SubjectFilters) -> Select:
    """Narrow a subject query; every filter is optional and they combine with AND."""
    if filters.search:
        term = contains_pattern(filters.search)
        query = query.where(
            or_(
                SubjectModel.name.ilike(term, escape=LIKE_ESCAPE),
                SubjectModel.code.ilike(term, escape=LIKE_ESCAPE),
                SubjectModel.description.ilike(term, escape=LIKE_ESCAPE),
            )
        )
    if filters.grade_level:
        query = query.where(SubjectModel.grade_level == filters.grade_level.value)
    if filters.strand:
        query = query.where(SubjectModel.strand == filters.strand.value)
    if filters.status:
        query = query.where(SubjectModel.status == filters.status.value)
    return query


async def list_subjects(
    db: AsyncSession, filters: SubjectFilters, page: int, limit: int
) -> tuple[Sequence[SubjectModel], Pagination]:
    """Get one page of live subjects, newest first, each with its enrollment count.

    Args:
        db: Database session
        filters: Optional search, grade level, strand and status filters
        page: 1-indexed page number
        limit: Maximum number of subjects on the page

    Returns:
        The page of subjects and its pagination metadata
    """
    query = apply_filters(live_subjects(), filters).order_by(
        SubjectModel.created_at.desc(), SubjectModel.id.desc()
    )
    return await paginate(db, query, page, limit)


async def get_subject(
    db: AsyncSession, subject_id: int, for_update: bool = False
) -> SubjectModel:
    """Get a live subject by ID.

    Args:
        db: Database session
        subject_id: Subject's ID
        for_update: Lock the row until the end of the transaction

    Raises:
        NotFoundError: If the subject does not exist or was soft deleted
    """
    query = (
        live_subjects()
        .where(SubjectModel.id == subject_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    subject = (await db.execute(query)).scalar_one_or_none()
    if subject is None:
        raise NotFoundError("Subject not found", resource_type="subject")
    return subject


async def get_enrolled_students(
    db: AsyncSession, subject_id: int
) -> list[dict[str, Any]]:
    """Students enrolled in a subject with the time they were enrolled."""
    query = (
        select(
            StudentModel.id,
            StudentModel.name,
            StudentModel.grade_level,
            StudentModel.strand,
            SubjectStudentModel.created_at.label("enrolled_at"),
        )
        .join(SubjectStudentModel, SubjectStudentModel.student_id == StudentModel.id)
        .where(
            SubjectStudentModel.subject_id == subject_id,
            StudentModel.deleted_at.is_(None),
        )
        .order_by(StudentModel.name, StudentModel.id)
    )
    result = await db.execute(query)
    return [dict(row) for row in result.mappings()]


async def get_subject_with_students(
    db: AsyncSession, subject_id: int
) -> tuple[SubjectModel, list[dict[str, Any]]]:
    subject = await get_subject(db, subject_id)
    return subject, await get_enrolled_students(db, subject.id)


async def count_enrollments(db: AsyncSession, subject_id: int) -> int:
    result = await db.execute(
        select(func.count(SubjectStudentModel.id)).where(
            SubjectStudentModel.subject_id == subject_id
        )
    )
    return result.scalar_one()


async def _ensure_code_available(
    db: AsyncSession, code: str, exclude_id: int | None = None
) -> None:
    query = live_subjects().where(SubjectModel.code == code)
    if exclude_id is not None:
        query = query.where(SubjectModel.id != exclude_id)
    if (await db.execute(query.limit(1))).first() is not None:
        raise DuplicateCodeError(code)


async def create_subject(db: AsyncSession, data: SubjectCreate) -> SubjectModel:
    """Create a subject; its code must not be used by another live subject.

    Raises:
        DuplicateCodeError: If a live subject already uses the code
    """
    await _ensure_code_available(db, data.code)

    subject = SubjectModel(**data.model_dump())
    db.add(subject)
    try:
        await db.commit()
    except IntegrityError:
        # Another request took the code between the check and the insert
        await db.rollback()
        raise DuplicateCodeError(data.code)
    await db.refresh(subject)

    logger.info("Subject created", subject_id=subject.id, code=subject.code)
    return subject


async def update_subject(
    db: AsyncSession, subject_id: int, data: SubjectUpdate
) -> SubjectModel:
    """Update a live subject. Fields left out of the body keep their values.

    Raises:
        NotFoundError: If the subject is not live
        DuplicateCodeError: If another live subject already uses the code
    """
    subject = await get_subject(db, subject_id)
    await _ensure_code_available(db, data.code, exclude_id=subject.id)

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(subject, field, value)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateCodeError(data.code)
    await db.refresh(subject)

    logger.info("Subject updated", subject_id=subject.id)
    return subject


async def delete_subject(db: AsyncSession, subject_id: int) -> SubjectModel:
    """Soft delete a subject that has no enrolled students.

    Raises:
        NotFoundError: If the subject is not live
        HasActiveEnrollmentsError: If any student is still enrolled
    """
    try:
        subject = await get_subject(db, subject_id, for_update=True)
        students_count = await count_enrollments(db, subject.id)
        if students_count:
            raise HasActiveEnrollmentsError(subject.id, students_count)

        subject.soft_delete()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Subject deleted", subject_id=subject.id)
    return subject


def grade_levels() -> list[str]:
    return enum_values(GradeLevel)


def strands() -> list[str]:
    return enum_values(Strand)
