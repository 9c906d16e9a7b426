from typing import Sequence

import structlog
from passlib.context import CryptContext
from sqlalchemy import Select, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import DuplicateEmailError, NotFoundError, ValidationFailedError
from app.models.user_model import UserModel
from app.schemas.common_schema import Pagination
from app.schemas.user_schema import UserCreate, UserFilters, UserUpdate
from app.utils.pagination import paginate
from app.utils.search import LIKE_ESCAPE, contains_pattern

logger = structlog.get_logger()

# Password hashing, keep it here to avoid recreating the context in each create_user function
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def live_users() -> Select:
    return select(UserModel).where(UserModel.deleted_at.is_(None))


async def get_user(db: AsyncSession, user_id: int) -> UserModel | None:
    """Get live user by ID.

    Args:
        db: Database session
        user_id: User's ID

    Returns:
        User object if found and not deleted, None otherwise
    """
    result = await db.execute(live_users().where(UserModel.id == user_id))
    return result.scalar_one_or_none()


async def get_user_or_404(db: AsyncSession, user_id: int) -> UserModel:
    user = await get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found", resource_type="user")
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> UserModel | None:
    """Get live user by email.

    Args:
        db: Database session
        email: User's email address

    Returns:
        User object if found, None otherwise
    """
    result = await db.execute(live_users().where(UserModel.email == email))
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession, filters: UserFilters, page: int, limit: int
) -> tuple[Sequence[UserModel], Pagination]:
    """Get one page of live users, newest first."""
    query = live_users()
    if filters.search:
        term = contains_pattern(filters.search)
        query = query.where(
            or_(
                UserModel.name.ilike(term, escape=LIKE_ESCAPE),
                UserModel.email.ilike(term, escape=LIKE_ESCAPE),
            )
        )
    if filters.role:
        query = query.where(UserModel.role == filters.role.value)
    query = query.order_by(UserModel.created_at.desc(), UserModel.id.desc())
    return await paginate(db, query, page, limit)


async def create_user(db: AsyncSession, user: UserCreate) -> UserModel:
    """Create a new user in the database with hashed password.

    Args:
        db: Database session for executing the transaction
        user: UserCreate schema containing the user data

    Returns:
        User: The newly created user object with populated database fields

    Raises:
        DuplicateEmailError: If a live user already has the email
    """
    if await get_user_by_email(db, user.email) is not None:
        raise DuplicateEmailError(user.email)

    db_user = UserModel(
        name=user.name,
        email=user.email,
        role=user.role,
        password_hash=hash_password(user.password),
    )
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEmailError(user.email)
    await db.refresh(db_user)

    logger.info("User created", user_id=db_user.id, role=db_user.role)
    return db_user


async def update_user(db: AsyncSession, user_id: int, data: UserUpdate) -> UserModel:
    """Update a user; the password only changes when a new one is given."""
    user = await get_user_or_404(db, user_id)
    existing = await get_user_by_email(db, data.email)
    if existing is not None and existing.id != user.id:
        raise DuplicateEmailError(data.email)

    user.name = data.name
    user.email = data.email
    if "role" in data.model_fields_set:
        user.role = data.role
    if data.password:
        user.password_hash = hash_password(data.password)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEmailError(data.email)
    await db.refresh(user)

    logger.info("User updated", user_id=user.id, password_changed=bool(data.password))
    return user


async def delete_user(db: AsyncSession, user_id: int, acting_user: UserModel) -> UserModel:
    """Soft delete a user by setting their deleted_at timestamp.

    Args:
        db: Database session
        user_id: ID of the user to delete
        acting_user: The administrator making the request

    Returns:
        User: The deleted user object

    Raises:
        NotFoundError: If the user does not exist
        ValidationFailedError: If administrators try to delete themselves
    """
    user = await get_user_or_404(db, user_id)
    if user.id == acting_user.id:
        raise ValidationFailedError(
            "You cannot delete your own account",
            errors={"user": ["You cannot delete your own account."]},
        )

    user.soft_delete()
    await db.commit()
    await db.refresh(user)

    logger.info("User deleted", user_id=user.id, deleted_by=acting_user.id)
    return user
