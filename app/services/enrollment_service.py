"""
Enrollment of students in subjects.

Each call runs as a single transaction on the caller's session: either every
requested row is written (or removed) or nothing is. The subject row is
locked for the duration of the call so an enrollment cannot race with the
subject being deleted.
"""

from typing import Iterable

import structlog
from sqlalchemy import delete, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import StudentNotFoundError
from app.models.enrollment_model import SubjectStudentModel
from app.models.mixins import utcnow
from app.models.student_model import StudentModel
from app.models.subject_model import SubjectModel
from app.services.subject_service import get_subject

logger = structlog.get_logger()


def _insert_ignoring_duplicates(db: AsyncSession, rows: list[dict]):
    """INSERT that silently skips pairs another transaction enrolled first."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(SubjectStudentModel).values(rows)
    elif dialect == "sqlite":
        stmt = sqlite.insert(SubjectStudentModel).values(rows)
    else:
        return insert(SubjectStudentModel).values(rows)
    return stmt.on_conflict_do_nothing(index_elements=["subject_id", "student_id"])


async def enroll(
    db: AsyncSession, subject_id: int, student_ids: Iterable[int]
) -> SubjectModel:
    """Enroll students in a subject.

    Students that are already enrolled are skipped, so repeating a call is
    harmless. If any ID does not belong to a live student the whole batch is
    rejected and nothing is written.

    Args:
        db: Database session
        subject_id: ID of a live subject
        student_ids: IDs of the students to enroll

    Returns:
        The subject with its refreshed ``students_count``

    Raises:
        NotFoundError: If the subject is not live
        StudentNotFoundError: If any of the students does not exist
    """
    requested = set(student_ids)
    try:
        subject = await get_subject(db, subject_id, for_update=True)

        result = await db.execute(
            select(StudentModel.id).where(
                StudentModel.id.in_(sorted(requested)),
                StudentModel.deleted_at.is_(None),
            )
        )
        missing = requested - set(result.scalars())
        if missing:
            raise StudentNotFoundError(missing)

        result = await db.execute(
            select(SubjectStudentModel.student_id).where(
                SubjectStudentModel.subject_id == subject.id,
                SubjectStudentModel.student_id.in_(sorted(requested)),
            )
        )
        new_ids = sorted(requested - set(result.scalars()))

        if new_ids:
            now = utcnow()
            rows = [
                {
                    "subject_id": subject.id,
                    "student_id": student_id,
                    "created_at": now,
                    "updated_at": now,
                }
                for student_id in new_ids
            ]
            await db.execute(_insert_ignoring_duplicates(db, rows))
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(subject)
    logger.info(
        "Students enrolled",
        subject_id=subject.id,
        requested=len(requested),
        added=len(new_ids),
        students_count=subject.students_count,
    )
    return subject


async def unenroll(
    db: AsyncSession, subject_id: int, student_ids: Iterable[int]
) -> SubjectModel:
    """Remove students from a subject.

    IDs without a matching enrollment are ignored.

    Raises:
        NotFoundError: If the subject is not live
    """
    requested = set(student_ids)
    try:
        subject = await get_subject(db, subject_id, for_update=True)
        result = await db.execute(
            delete(SubjectStudentModel).where(
                SubjectStudentModel.subject_id == subject.id,
                SubjectStudentModel.student_id.in_(sorted(requested)),
            )
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await db.refresh(subject)
    logger.info(
        "Students unenrolled",
        subject_id=subject.id,
        requested=len(requested),
        removed=result.rowcount,
        students_count=subject.students_count,
    )
    return subject
