from typing import Optional

import structlog
from fastapi import APIRouter, Query

from app.models.enums import GradeLevel, Strand, SubjectStatus
from app.schemas.common_schema import Envelope
from app.schemas.subject_schema import (
    EnrollmentRequest,
    GradeLevelOptions,
    StrandOptions,
    SubjectCreate,
    SubjectDetail,
    SubjectDetailEnvelope,
    SubjectEnvelope,
    SubjectFilters,
    SubjectListResponse,
    SubjectResponse,
    SubjectUpdate,
)
from app.services import enrollment_service, subject_service
from app.utils.deps import DB, AdminUser
from app.utils.pagination import clamp_limit

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=SubjectListResponse)
async def list_subjects(
    db: DB,
    _: AdminUser,
    search: Optional[str] = None,
    grade_level: Optional[GradeLevel] = None,
    strand: Optional[Strand] = None,
    status: Optional[SubjectStatus] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    """List live subjects with their enrollment counts, newest first."""
    filters = SubjectFilters(
        search=search, grade_level=grade_level, strand=strand, status=status
    )
    subjects, pagination = await subject_service.list_subjects(
        db, filters, page, clamp_limit(limit)
    )
    return SubjectListResponse(
        subjects=[SubjectResponse.model_validate(s) for s in subjects],
        pagination=pagination,
    )


# Fixed option lists are registered before /{subject_id}
@router.get("/grade-levels", response_model=GradeLevelOptions)
async def get_grade_levels(_: AdminUser):
    return GradeLevelOptions(grade_levels=subject_service.grade_levels())


@router.get("/strands", response_model=StrandOptions)
async def get_strands(_: AdminUser):
    return StrandOptions(strands=subject_service.strands())


@router.post("", response_model=SubjectEnvelope, status_code=201)
async def create_subject(data: SubjectCreate, db: DB, _: AdminUser):
    subject = await subject_service.create_subject(db, data)
    return SubjectEnvelope(
        message="Subject created successfully",
        subject=SubjectResponse.model_validate(subject),
    )


@router.get("/{subject_id}", response_model=SubjectDetailEnvelope)
async def get_subject(subject_id: int, db: DB, _: AdminUser):
    """Get a subject together with the students enrolled in it."""
    subject, students = await subject_service.get_subject_with_students(db, subject_id)
    detail = SubjectDetail.model_validate(
        {**SubjectResponse.model_validate(subject).model_dump(), "students": students}
    )
    return SubjectDetailEnvelope(subject=detail)


@router.put("/{subject_id}", response_model=SubjectEnvelope)
async def update_subject(subject_id: int, data: SubjectUpdate, db: DB, _: AdminUser):
    subject = await subject_service.update_subject(db, subject_id, data)
    return SubjectEnvelope(
        message="Subject updated successfully",
        subject=SubjectResponse.model_validate(subject),
    )


@router.delete("/{subject_id}", response_model=Envelope)
async def delete_subject(subject_id: int, db: DB, _: AdminUser):
    """Soft delete a subject. Subjects with enrolled students cannot be deleted."""
    await subject_service.delete_subject(db, subject_id)
    return Envelope(message="Subject deleted successfully")


@router.post("/{subject_id}/enroll", response_model=SubjectEnvelope)
async def enroll_students(
    subject_id: int, data: EnrollmentRequest, db: DB, _: AdminUser
):
    """Enroll students; already enrolled students are left as they are."""
    subject = await enrollment_service.enroll(db, subject_id, data.student_ids)
    return SubjectEnvelope(
        message="Students enrolled successfully",
        subject=SubjectResponse.model_validate(subject),
    )


@router.post("/{subject_id}/unenroll", response_model=SubjectEnvelope)
async def unenroll_students(
    subject_id: int, data: EnrollmentRequest, db: DB, _: AdminUser
):
    subject = await enrollment_service.unenroll(db, subject_id, data.student_ids)
    return SubjectEnvelope(
        message="Students unenrolled successfully",
        subject=SubjectResponse.model_validate(subject),
    )
