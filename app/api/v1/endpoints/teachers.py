from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from app.models.enums import Gender
from app.schemas.common_schema import Envelope
from app.schemas.teacher_schema import (
    TeacherCreate,
    TeacherEnvelope,
    TeacherFilters,
    TeacherListResponse,
    TeacherResponse,
)
from app.services import teacher_service
from app.utils.deps import DB, AdminUser, CurrentUser, Storage
from app.utils.pagination import clamp_limit

router = APIRouter()
logger = structlog.get_logger()


def teacher_form(
    name: str = Form(...),
    email: str = Form(...),
    phone: str = Form(...),
    subject: str = Form(...),
    gender: str = Form(...),
) -> TeacherCreate:
    return TeacherCreate(
        name=name, email=email, phone=phone, subject=subject, gender=gender
    )


@router.get("", response_model=TeacherListResponse)
async def list_teachers(
    db: DB,
    _: CurrentUser,
    search: Optional[str] = None,
    gender: Optional[Gender] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    teachers, pagination = await teacher_service.list_teachers(
        db, TeacherFilters(search=search, gender=gender), page, clamp_limit(limit)
    )
    return TeacherListResponse(
        teachers=[TeacherResponse.model_validate(t) for t in teachers],
        pagination=pagination,
    )


@router.get("/{teacher_id}", response_model=TeacherEnvelope)
async def get_teacher(teacher_id: int, db: DB, _: CurrentUser):
    teacher = await teacher_service.get_teacher(db, teacher_id)
    return TeacherEnvelope(teacher=TeacherResponse.model_validate(teacher))


@router.post("", response_model=TeacherEnvelope, status_code=201)
async def create_teacher(
    db: DB,
    storage: Storage,
    _: AdminUser,
    data: TeacherCreate = Depends(teacher_form),
    image: Optional[UploadFile] = File(None),
):
    teacher = await teacher_service.create_teacher(
        db, data, storage, image if image and image.filename else None
    )
    return TeacherEnvelope(
        message="Teacher created successfully",
        teacher=TeacherResponse.model_validate(teacher),
    )


@router.put("/{teacher_id}", response_model=TeacherEnvelope)
async def update_teacher(
    teacher_id: int,
    db: DB,
    storage: Storage,
    _: AdminUser,
    data: TeacherCreate = Depends(teacher_form),
    image: Optional[UploadFile] = File(None),
):
    teacher = await teacher_service.update_teacher(
        db, teacher_id, data, storage, image if image and image.filename else None
    )
    return TeacherEnvelope(
        message="Teacher updated successfully",
        teacher=TeacherResponse.model_validate(teacher),
    )


@router.delete("/{teacher_id}", response_model=Envelope)
async def delete_teacher(teacher_id: int, db: DB, storage: Storage, _: AdminUser):
    await teacher_service.delete_teacher(db, teacher_id, storage)
    return Envelope(message="Teacher deleted successfully")
