from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.models.enums import GradeLevel, Strand
from app.schemas.common_schema import Envelope
from app.schemas.student_schema import (
    StudentCreate,
    StudentEnvelope,
    StudentFilters,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from app.services import student_service
from app.utils.deps import DB, AdminUser, CurrentUser, Storage
from app.utils.pagination import clamp_limit

router = APIRouter()
logger = structlog.get_logger()


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value


def _student_fields(**fields: Optional[str]) -> dict:
    required = {"name", "gender", "grade_level", "strand", "section", "subject"}
    return {
        key: value if key in required else _blank_to_none(value)
        for key, value in fields.items()
    }


def student_form(
    name: str = Form(...),
    gender: str = Form(...),
    grade_level: str = Form(...),
    strand: str = Form(...),
    section: str = Form(...),
    subject: str = Form(...),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    birth_date: Optional[str] = Form(None),
    guardian_name: Optional[str] = Form(None),
    guardian_phone: Optional[str] = Form(None),
    guardian_relationship: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    is_active: bool = Form(True),
) -> StudentCreate:
    """Collect the multipart form fields into a validated student payload."""
    fields = _student_fields(
        name=name,
        gender=gender,
        grade_level=grade_level,
        strand=strand,
        section=section,
        subject=subject,
        email=email,
        phone=phone,
        address=address,
        birth_date=birth_date,
        guardian_name=guardian_name,
        guardian_phone=guardian_phone,
        guardian_relationship=guardian_relationship,
        notes=notes,
    )
    return StudentCreate(**fields, is_active=is_active)


def student_update_form(
    name: str = Form(...),
    gender: str = Form(...),
    grade_level: str = Form(...),
    strand: str = Form(...),
    section: str = Form(...),
    subject: str = Form(...),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    birth_date: Optional[str] = Form(None),
    guardian_name: Optional[str] = Form(None),
    guardian_phone: Optional[str] = Form(None),
    guardian_relationship: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    is_active: Optional[bool] = Form(None),
) -> StudentUpdate:
    """Same form as ``student_form``; ``is_active`` only changes when it is sent."""
    fields = _student_fields(
        name=name,
        gender=gender,
        grade_level=grade_level,
        strand=strand,
        section=section,
        subject=subject,
        email=email,
        phone=phone,
        address=address,
        birth_date=birth_date,
        guardian_name=guardian_name,
        guardian_phone=guardian_phone,
        guardian_relationship=guardian_relationship,
        notes=notes,
    )
    if is_active is not None:
        fields["is_active"] = is_active
    return StudentUpdate(**fields)


def _upload_or_none(upload: Optional[UploadFile]) -> Optional[UploadFile]:
    # Browsers send an empty part when no file is chosen
    if upload is None or not upload.filename:
        return None
    return upload


@router.get("", response_model=StudentListResponse)
async def list_students(
    db: DB,
    _: CurrentUser,
    search: Optional[str] = None,
    grade_level: Optional[GradeLevel] = None,
    strand: Optional[Strand] = None,
    is_active: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    filters = StudentFilters(
        search=search, grade_level=grade_level, strand=strand, is_active=is_active
    )
    students, pagination = await student_service.list_students(
        db, filters, page, clamp_limit(limit)
    )
    return StudentListResponse(
        students=[StudentResponse.model_validate(s) for s in students],
        pagination=pagination,
    )


@router.get("/{student_id}", response_model=StudentEnvelope)
async def get_student(student_id: int, db: DB, _: CurrentUser):
    student = await student_service.get_student(db, student_id)
    return StudentEnvelope(student=StudentResponse.model_validate(student))


@router.post("", response_model=StudentEnvelope, status_code=201)
async def create_student(
    db: DB,
    storage: Storage,
    _: AdminUser,
    data: StudentCreate = Depends(student_form),
    avatar: Optional[UploadFile] = File(None),
):
    """Create a student from a multipart form with an optional avatar image."""
    student = await student_service.create_student(
        db, data, storage, _upload_or_none(avatar)
    )
    return StudentEnvelope(
        message="Student created successfully",
        student=StudentResponse.model_validate(student),
    )


@router.put("/{student_id}", response_model=StudentEnvelope)
async def update_student(
    student_id: int,
    db: DB,
    storage: Storage,
    _: AdminUser,
    data: StudentUpdate = Depends(student_update_form),
    avatar: Optional[UploadFile] = File(None),
):
    student = await student_service.update_student(
        db, student_id, data, storage, _upload_or_none(avatar)
    )
    return StudentEnvelope(
        message="Student updated successfully",
        student=StudentResponse.model_validate(student),
    )


@router.delete("/{student_id}", response_model=Envelope)
async def delete_student(student_id: int, db: DB, storage: Storage, _: AdminUser):
    """Soft delete a student and remove them from every subject."""
    await student_service.delete_student(db, student_id, storage)
    return Envelope(message="Student deleted successfully")
