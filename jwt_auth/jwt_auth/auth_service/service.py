"""
Authentication core.

`AuthService` orchestrates the user store, the token blacklist, the password
reset store, the token codec, the password hasher and the email sender. It is
request scoped and holds no state of its own; every collaborator and setting
is passed in by the caller.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional
import logging
import secrets

from .auth import ACCESS_TOKEN, REFRESH_TOKEN, PasswordHasher, TokenCodec, utcnow, validate_new_password
from .config import Settings
from .errors import AuthError, ConflictError, EmailDeliveryError, InternalError, NotFoundError
from .models import User
from .notifier import EmailSender
from .repositories import BlacklistRepository, Clock, PasswordResetRepository, UserRepository
from .schemas import LoginRequest, RegisterRequest, ResetPasswordRequest
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)

# 32 random bytes, hex encoded to 64 characters
RESET_TOKEN_BYTES = 32


@dataclass
class AuthResult:
    user: User
    access_token: str
    refresh_token: str


class AuthService:
    def __init__(
        self,
        settings: Settings,
        users: UserRepository,
        blacklist: BlacklistRepository,
        resets: PasswordResetRepository,
        email_sender: EmailSender,
        hasher: Optional[PasswordHasher] = None,
        tokens: Optional[TokenCodec] = None,
        clock: Clock = utcnow,
    ):
        self.settings = settings
        self.users = users
        self.blacklist = blacklist
        self.resets = resets
        self.email_sender = email_sender
        self.hasher = hasher or PasswordHasher(settings)
        self.tokens = tokens or TokenCodec(settings)
        self.clock = clock

    def _lookup_identity(self, find: Callable[[str], Optional[User]], identifier: str) -> User:
        """
        Resolve a user for login or password reset.

        All existence checks that reach the caller go through here, so the
        "user not found" response can be made indistinguishable from a bad
        password with UNIFORM_AUTH_ERRORS.
        """
        user = find(identifier)
        if user is None:
            if self.settings.UNIFORM_AUTH_ERRORS:
                raise AuthError("invalid credentials")
            raise NotFoundError("user not found")
        return user

    def _issue_tokens(self, user: User) -> AuthResult:
        access_token, refresh_token = self.tokens.create_token_pair(user.email)
        return AuthResult(user=user, access_token=access_token, refresh_token=refresh_token)

    def register(self, request: RegisterRequest) -> AuthResult:
        validate_new_password(request.password, request.confirm_password, self.settings)
        # Hash before touching the store so no transaction is open meanwhile
        password_hash = self.hasher.hash(request.password)

        if self.users.find_by_email(request.email) is not None:
            raise ConflictError("user already exists")
        if self.users.find_by_username(request.user_name) is not None:
            raise ConflictError("username already taken")

        user = User(
            first_name=request.first_name,
            last_name=request.last_name,
            username=request.user_name,
            email=request.email,
            password=password_hash,
        )
        user = self.users.create(user)

        log_auth_event("register", user.email, user_id=user.id)
        return self._issue_tokens(user)

    def login(self, request: LoginRequest) -> AuthResult:
        user = self._lookup_identity(self.users.find_by_username_or_email, request.identifier)

        if not self.hasher.verify(request.password, user.password):
            log_auth_event("login_failure", user.email, user_id=user.id)
            raise AuthError("invalid credentials")

        log_auth_event("login_success", user.email, user_id=user.id)
        return self._issue_tokens(user)

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a refresh token for a new token pair, revoking the old one."""
        claims = self.tokens.decode(refresh_token, expected_type=REFRESH_TOKEN)
        if self.blacklist.is_blacklisted(refresh_token):
            raise AuthError("token has been revoked")

        user = self.users.find_by_email(claims.subject)
        if user is None:
            raise AuthError("invalid token")

        # Only the request that records the revocation may rotate the token
        if not self.blacklist.add(refresh_token, claims.expires_at):
            raise AuthError("token has been revoked")
        log_auth_event("token_refresh", user.email)
        return self._issue_tokens(user)

    def logout(self, token: str) -> None:
        """
        Revoke a token until its natural expiry.

        Tokens of either type may be revoked. Adding an already revoked token
        is a no-op.
        """
        claims = self.tokens.decode(token)
        self.blacklist.add(token, claims.expires_at)
        log_auth_event("logout", claims.subject, token_type=claims.token_type)

    def verify_access_token(self, token: str) -> str:
        """Return the subject of a valid, unrevoked access token."""
        claims = self.tokens.decode(token, expected_type=ACCESS_TOKEN)
        if self.blacklist.is_blacklisted(token):
            raise AuthError("token has been revoked")
        return claims.subject

    def get_profile(self, email: str) -> User:
        user = self.users.find_by_email(email)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def forgot_password(self, email: str) -> str:
        """
        Issue a reset token for email and hand it to the email sender.

        The token is stored before delivery, so it stays valid when the email
        fails to send; the failure is still reported as InternalError.
        """
        user = self._lookup_identity(self.users.find_by_email, email)

        reset_token = secrets.token_hex(RESET_TOKEN_BYTES)
        expiry = self.clock() + timedelta(minutes=self.settings.RESET_TOKEN_EXPIRE_MINUTES)
        self.resets.store_token(user.email, reset_token, expiry)

        try:
            self.email_sender.send_password_reset_email(user.email, reset_token)
        except EmailDeliveryError as e:
            raise InternalError("failed to send password reset email") from e

        log_auth_event("password_reset_requested", user.email, expires_at=expiry.isoformat())
        return reset_token

    def reset_password(self, request: ResetPasswordRequest) -> None:
        validate_new_password(request.new_password, request.confirm_password, self.settings)
        password_hash = self.hasher.hash(request.new_password)

        email = self.resets.find_email_by_token(request.token)
        if email is None:
            raise AuthError("invalid or expired reset token")

        self.users.update_password(email, password_hash)

        try:
            self.resets.invalidate_token(request.token)
        except InternalError:
            # The new password is already stored; callers must retry invalidation
            logger.error("Password updated for %s but reset token was not invalidated", email)
            raise

        log_auth_event("password_reset", email)
