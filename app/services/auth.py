from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import AuthenticationError, ValidationFailedError
from app.models.enums import UserRole
from app.models.token_blacklist_model import TokenBlacklistModel
from app.models.user_model import UserModel
from app.schemas.auth import RegisterInput
from app.schemas.user_schema import UserCreate
from app.services.user_service import create_user, get_user, get_user_by_email, verify_password

logger = structlog.get_logger()

# Security scheme for JWT Bearer token; missing credentials are reported by us
security = HTTPBearer(auto_error=False)

# Client route each role lands on after signing in
REDIRECTS = {
    UserRole.ADMIN.value: "/admin/dashboard",
    UserRole.TEACHER.value: "/teacher/dashboard",
    UserRole.STUDENT.value: "/student/dashboard",
}


def redirect_for(user: UserModel) -> str:
    return REDIRECTS.get(user.role, "/")


def create_access_token(user: UserModel) -> str:
    """
    Create a JWT access token.

    Args:
        user: User the token is issued to

    Returns:
        Encoded JWT token string
    """
    expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {"sub": str(user.id), "role": user.role, "exp": expire, "type": "access"}

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


async def is_token_blacklisted(db: AsyncSession, token: str) -> bool:
    result = await db.execute(
        select(TokenBlacklistModel.id).where(TokenBlacklistModel.token == token)
    )
    return result.first() is not None


async def decode_token(token: str, db: AsyncSession | None = None) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: JWT token string
        db: Optional database session to check the blacklist

    Returns:
        Dict containing the decoded token payload

    Raises:
        AuthenticationError: If token is invalid, expired, or blacklisted
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")

    if db is not None and await is_token_blacklisted(db, token):
        raise AuthenticationError("Token has been revoked")

    return payload


async def get_current_user(
    db: AsyncSession, credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> UserModel:
    """
    Get the currently authenticated user from the database.
    This function is used as a dependency for protected routes.

    Raises:
        AuthenticationError: If authentication fails
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    payload = await decode_token(credentials.credentials, db)
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise AuthenticationError("Invalid token payload")

    user = await get_user(db, int(user_id))
    if user is None:
        raise AuthenticationError("User not found")
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> UserModel:
    """
    Check a user's credentials.

    Raises:
        ValidationFailedError: If the email is unknown or the password is wrong
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Login rejected", email=email)
        raise ValidationFailedError(
            "Invalid credentials",
            errors={"email": ["These credentials do not match our records."]},
        )
    return user


async def register_user(db: AsyncSession, data: RegisterInput) -> UserModel:
    """
    Create an account from the public registration form.

    Raises:
        ValidationFailedError: If the form asks for the Admin role
        DuplicateEmailError: If the email is taken
    """
    if data.role == UserRole.ADMIN:
        raise ValidationFailedError(
            errors={"role": ["Administrator accounts cannot be self registered."]}
        )
    return await create_user(
        db,
        UserCreate(
            name=data.name, email=data.email, password=data.password, role=data.role
        ),
    )


async def blacklist_token(db: AsyncSession, token: str, user_id: int) -> None:
    """
    Add a token to the blacklist until it would have expired anyway.

    Args:
        db: Database session
        token: The JWT token to blacklist
        user_id: The user ID the token belongs to
    """
    payload = await decode_token(token)
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    values = {
        "token": token,
        "user_id": user_id,
        "expires_at": expires_at,
        "blacklisted_at": datetime.now(timezone.utc),
    }

    dialect = db.get_bind().dialect.name
    insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
    stmt = insert(TokenBlacklistModel).values(**values)
    try:
        await db.execute(stmt.on_conflict_do_nothing(index_elements=["token"]))
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Token blacklisted", user_id=user_id)


async def cleanup_expired_blacklisted_tokens(db: AsyncSession) -> int:
    """
    Remove expired tokens from the blacklist to keep the table size manageable.

    Returns:
        Number of tokens removed
    """
    result = await db.execute(
        delete(TokenBlacklistModel).where(
            TokenBlacklistModel.expires_at < datetime.now(timezone.utc)
        )
    )
    await db.commit()
    logger.info("Removed expired tokens from blacklist", count=result.rowcount)
    return result.rowcount
