"""
Authentication endpoints.
"""
from fastapi import APIRouter, Depends, Response, status

from ..config import Settings
from ..deps import get_auth_service, get_bearer_token, get_current_user_email, get_settings
from ..errors import AuthError, InternalError, NotFoundError
from ..schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from ..service import AuthResult, AuthService

router = APIRouter(tags=["auth"])


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.access_token,
        refresh_token=result.refresh_token,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return _auth_response(service.register(payload))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    try:
        result = service.login(payload)
    except NotFoundError as e:
        # An unknown identifier is a failed login, not a missing resource
        raise AuthError(e.message) from e
    return _auth_response(result)


@router.post("/refresh", response_model=AuthResponse)
def refresh(payload: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    return _auth_response(service.refresh(payload.refresh_token))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    _email: str = Depends(get_current_user_email),
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
):
    service.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
def get_profile(
    email: str = Depends(get_current_user_email),
    service: AuthService = Depends(get_auth_service),
):
    try:
        user = service.get_profile(email)
    except NotFoundError as e:
        # Valid token for an account that no longer exists
        raise AuthError(e.message) from e
    return UserResponse.model_validate(user)


# ---------------- Password Reset Flow ----------------

@router.post("/forgot-password", response_model=ForgotPasswordResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    try:
        token = service.forgot_password(payload.email)
    except NotFoundError as e:
        raise InternalError(e.message) from e
    except AuthError:
        if not settings.UNIFORM_AUTH_ERRORS:
            raise
        return ForgotPasswordResponse(message="Password reset link sent")
    # Never hand the token back outside dev mode
    return ForgotPasswordResponse(
        message="Password reset link sent",
        token=token if settings.DEV_MODE else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(payload: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)):
    service.reset_password(payload)
    return MessageResponse(message="Password has been reset")
