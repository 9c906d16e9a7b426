from typing import Sequence

import structlog
from fastapi import UploadFile
from sqlalchemy import Select, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateEmailError, NotFoundError
from app.models.enrollment_model import SubjectStudentModel
from app.models.student_model import StudentModel
from app.schemas.common_schema import Pagination
from app.schemas.student_schema import StudentCreate, StudentFilters, StudentUpdate
from app.services.storage import STUDENT_AVATAR_DIR, FileStorage
from app.utils.pagination import paginate
from app.utils.search import LIKE_ESCAPE, contains_pattern

logger = structlog.get_logger()


def live_students() -> Select:
    return select(StudentModel).where(StudentModel.deleted_at.is_(None))


def apply_filters(query: Select, filters: StudentFilters) -> Select:
    if filters.search:
        term = contains_pattern(filters.search)
        query = query.where(
            or_(
                StudentModel.name.ilike(term, escape=LIKE_ESCAPE),
                StudentModel.email.ilike(term, escape=LIKE_ESCAPE),
                StudentModel.subject.ilike(term, escape=LIKE_ESCAPE),
            )
        )
    if filters.grade_level:
        query = query.where(StudentModel.grade_level == filters.grade_level.value)
    if filters.strand:
        query = query.where(StudentModel.strand == filters.strand.value)
    if filters.is_active is not None:
        query = query.where(StudentModel.is_active.is_(filters.is_active))
    return query


async def list_students(
    db: AsyncSession, filters: StudentFilters, page: int, limit: int
) -> tuple[Sequence[StudentModel], Pagination]:
    query = apply_filters(live_students(), filters).order_by(
        StudentModel.created_at.desc(), StudentModel.id.desc()
    )
    return await paginate(db, query, page, limit)


async def get_student(db: AsyncSession, student_id: int) -> StudentModel:
    """Get a live student by ID.

    Raises:
        NotFoundError: If the student does not exist or was soft deleted
    """
    result = await db.execute(live_students().where(StudentModel.id == student_id))
    student = result.scalar_one_or_none()
    if student is None:
        raise NotFoundError("Student not found", resource_type="student")
    return student


async def _ensure_email_available(
    db: AsyncSession, email: str | None, exclude_id: int | None = None
) -> None:
    if not email:
        return
    query = live_students().where(StudentModel.email == email)
    if exclude_id is not None:
        query = query.where(StudentModel.id != exclude_id)
    if (await db.execute(query.limit(1))).first() is not None:
        raise DuplicateEmailError(email)


async def _commit_or_discard_upload(
    db: AsyncSession, storage: FileStorage, new_path: str | None, email: str | None
) -> None:
    """Commit the session; on failure remove the file uploaded for this request."""
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await storage.delete(new_path)
        raise DuplicateEmailError(email or "")
    except Exception:
        await db.rollback()
        await storage.delete(new_path)
        raise


async def create_student(
    db: AsyncSession,
    data: StudentCreate,
    storage: FileStorage,
    avatar: UploadFile | None = None,
) -> StudentModel:
    """Create a student, storing the optional avatar upload.

    Raises:
        DuplicateEmailError: If a live student already uses the email
        ValidationFailedError: If the avatar is not an acceptable image
    """
    await _ensure_email_available(db, data.email)

    avatar_path = None
    if avatar is not None:
        avatar_path = await storage.save(avatar, STUDENT_AVATAR_DIR, "avatar")

    student = StudentModel(**data.model_dump(), avatar=avatar_path)
    db.add(student)
    await _commit_or_discard_upload(db, storage, avatar_path, data.email)
    await db.refresh(student)

    logger.info("Student created", student_id=student.id, has_avatar=bool(avatar_path))
    return student


async def update_student(
    db: AsyncSession,
    student_id: int,
    data: StudentUpdate,
    storage: FileStorage,
    avatar: UploadFile | None = None,
) -> StudentModel:
    """Update a live student. A new avatar replaces and deletes the old file."""
    student = await get_student(db, student_id)
    await _ensure_email_available(db, data.email, exclude_id=student.id)

    old_avatar = student.avatar
    new_avatar = None
    if avatar is not None:
        new_avatar = await storage.save(avatar, STUDENT_AVATAR_DIR, "avatar")
        student.avatar = new_avatar

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(student, field, value)
    await _commit_or_discard_upload(db, storage, new_avatar, data.email)
    await db.refresh(student)

    if new_avatar and old_avatar:
        await storage.delete(old_avatar)

    logger.info(
        "Student updated", student_id=student.id, avatar_replaced=bool(new_avatar)
    )
    return student


async def delete_student(
    db: AsyncSession, student_id: int, storage: FileStorage
) -> StudentModel:
    """Soft delete a student and drop all of their enrollments.

    The enrollment rows are removed in the same transaction as the soft
    delete. The avatar file is removed once the transaction has committed.
    """
    try:
        student = await get_student(db, student_id)
        result = await db.execute(
            delete(SubjectStudentModel).where(
                SubjectStudentModel.student_id == student.id
            )
        )
        avatar = student.avatar
        student.avatar = None
        student.soft_delete()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await storage.delete(avatar)
    logger.info(
        "Student deleted",
        student_id=student.id,
        enrollments_removed=result.rowcount,
    )
    return student
