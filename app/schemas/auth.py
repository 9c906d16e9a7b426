from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.models.enums import UserRole
from app.schemas.common_schema import Envelope
from app.schemas.user_schema import UserResponse


class RegisterInput(BaseModel):
    """Schema for self registration from the login screen."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    password_confirmation: Optional[str] = Field(
        None, description="Must match password when provided"
    )
    role: UserRole = UserRole.STUDENT

    @model_validator(mode="after")
    def passwords_match(self):
        if (
            self.password_confirmation is not None
            and self.password_confirmation != self.password
        ):
            raise ValueError("The password confirmation does not match.")
        return self


class LoginInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(Envelope):
    """Schema for the login and register responses."""

    token: str = Field(..., description="JWT access token")
    token_type: str = "Bearer"
    user: UserResponse
    redirect_to: str = Field(..., description="Client route for the user's role")


class MeResponse(Envelope):
    user: UserResponse
