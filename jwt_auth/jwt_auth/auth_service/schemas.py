from pydantic import BaseModel, ConfigDict, Field

from typing import Optional


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    user_name: str = Field(min_length=1)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str
    confirm_password: str


class LoginRequest(BaseModel):
    # Email or username
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class UserResponse(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    user_name: Optional[str] = Field(default=None, validation_alias="username")
    email: str

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


# Password reset
class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")


class ForgotPasswordResponse(BaseModel):
    message: str
    # Only populated in DEV_MODE
    token: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str
    confirm_password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
