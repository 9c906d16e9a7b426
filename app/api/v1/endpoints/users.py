from typing import Optional

import structlog
from fastapi import APIRouter, Query

from app.models.enums import UserRole
from app.schemas.common_schema import Envelope
from app.schemas.user_schema import (
    UserCreate,
    UserEnvelope,
    UserFilters,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from app.services import user_service
from app.utils.deps import DB, AdminUser
from app.utils.pagination import clamp_limit

router = APIRouter()
logger = structlog.get_logger()


@router.get("", response_model=UserListResponse)
async def list_users(
    db: DB,
    _: AdminUser,
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
):
    users, pagination = await user_service.get_users(
        db, UserFilters(search=search, role=role), page, clamp_limit(limit)
    )
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users], pagination=pagination
    )


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(user_id: int, db: DB, _: AdminUser):
    user = await user_service.get_user_or_404(db, user_id)
    return UserEnvelope(user=UserResponse.model_validate(user))


@router.post("", response_model=UserEnvelope, status_code=201)
async def create_user(data: UserCreate, db: DB, _: AdminUser):
    user = await user_service.create_user(db, data)
    return UserEnvelope(
        message="User created successfully", user=UserResponse.model_validate(user)
    )


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(user_id: int, data: UserUpdate, db: DB, _: AdminUser):
    user = await user_service.update_user(db, user_id, data)
    return UserEnvelope(
        message="User updated successfully", user=UserResponse.model_validate(user)
    )


@router.delete("/{user_id}", response_model=Envelope)
async def delete_user(user_id: int, db: DB, admin: AdminUser):
    """Soft delete a user. Administrators cannot delete their own account."""
    await user_service.delete_user(db, user_id, admin)
    return Envelope(message="User deleted successfully")
