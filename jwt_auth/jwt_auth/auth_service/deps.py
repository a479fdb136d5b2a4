"""
FastAPI dependencies wiring the auth core to the request.
"""
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from .config import Settings, settings as app_settings
from .db import get_db
from .errors import AuthError
from .notifier import EmailSender, create_email_sender
from .repositories import SqlBlacklistRepository, SqlPasswordResetRepository, SqlUserRepository
from .service import AuthService


def get_settings() -> Settings:
    return app_settings


def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    return create_email_sender(settings)


def get_auth_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(
        settings=settings,
        users=SqlUserRepository(db),
        blacklist=SqlBlacklistRepository(db),
        resets=SqlPasswordResetRepository(db),
        email_sender=email_sender,
    )


def get_bearer_token(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> str:
    if not authorization:
        raise AuthError("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthError("Bearer token required")
    return token


def get_current_user_email(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> str:
    """Verify the access token, reject revoked ones, and yield its subject."""
    return service.verify_access_token(token)
