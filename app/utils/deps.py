"""
Dependency utilities for FastAPI endpoints.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import AuthorizationError
from app.models.enums import UserRole
from app.models.user_model import UserModel
from app.services.auth import get_current_user, security
from app.services.storage import FileStorage, get_storage


# Create a reusable dependency for the current authenticated user
async def get_current_user_dependency(
    db: AsyncSession = Depends(get_db),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UserModel:
    """
    Get the current authenticated user. This is a shorthand dependency that combines
    the database and authentication.
    """
    return await get_current_user(db, credentials)


def require_role(*roles: UserRole):
    """Build a dependency that only lets users with one of ``roles`` through."""
    allowed = {role.value for role in roles}

    async def dependency(
        user: UserModel = Depends(get_current_user_dependency),
    ) -> UserModel:
        if user.role not in allowed:
            raise AuthorizationError()
        return user

    return dependency


# Type annotations for common dependencies
DB = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[UserModel, Depends(get_current_user_dependency)]
AdminUser = Annotated[UserModel, Depends(require_role(UserRole.ADMIN))]
Storage = Annotated[FileStorage, Depends(get_storage)]
