import structlog
from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from app.schemas.auth import AuthResponse, LoginInput, MeResponse, RegisterInput
from app.schemas.common_schema import Envelope
from app.schemas.user_schema import UserResponse
from app.services.auth import (
    authenticate_user,
    blacklist_token,
    create_access_token,
    redirect_for,
    register_user,
    security,
)
from app.utils.deps import DB, CurrentUser

logger = structlog.get_logger()

router = APIRouter()


def _auth_response(user, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=create_access_token(user),
        user=UserResponse.model_validate(user),
        redirect_to=redirect_for(user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterInput, db: DB) -> AuthResponse:
    """
    Create an account and sign it in straight away.

    Administrator accounts can only be created by another administrator
    through the users endpoints.
    """
    user = await register_user(db, data)
    logger.info("User registered", user_id=user.id, role=user.role)
    return _auth_response(user, "Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginInput, db: DB) -> AuthResponse:
    """Exchange an email and password for a bearer token."""
    user = await authenticate_user(db, data.email, data.password)
    logger.info("User logged in", user_id=user.id)
    return _auth_response(user, "Login successful")


@router.post("/logout", response_model=Envelope)
async def logout(
    current_user: CurrentUser,
    db: DB,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Envelope:
    """
    Log out by blacklisting the presented token.
    """
    await blacklist_token(db, credentials.credentials, current_user.id)
    logger.info("User logged out", user_id=current_user.id)
    return Envelope(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(current_user: CurrentUser) -> MeResponse:
    """
    Get information about the currently authenticated user.
    """
    return MeResponse(user=UserResponse.model_validate(current_user))
