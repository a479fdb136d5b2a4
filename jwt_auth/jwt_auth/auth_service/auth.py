from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from dataclasses import dataclass
from typing import Optional
import string
import uuid
import jwt

from .config import Settings
from .errors import AuthError, ValidationError

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PasswordHasher:
    """Salted one-way password hashing backed by a passlib CryptContext."""

    def __init__(self, settings: Settings):
        self.pwd_context = CryptContext(schemes=settings.PASSWORD_HASH_SCHEMES, deprecated="auto")

    def hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        # passlib compares digests in constant time
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Unrecognized or corrupt hash
            return False


def validate_new_password(password: str, confirm_password: Optional[str], settings: Settings) -> None:
    """
    Check a new password against the configured policy.

    Raises:
        ValidationError: If the password is too short, does not match its
            confirmation, or fails the complexity check when it is enabled.
    """
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
        )
    if confirm_password is not None and confirm_password != password:
        raise ValidationError("password confirmation does not match")
    if settings.ENFORCE_PASSWORD_COMPLEXITY:
        check_password_complexity(password)


def check_password_complexity(password: str) -> None:
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(c in string.punctuation for c in password)

    if not (has_upper and has_lower and has_digit and has_special):
        raise ValidationError(
            "password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    expires_at: datetime
    token_type: Optional[str]


class TokenCodec:
    """
    Issues and verifies HMAC-signed JWTs.

    Access and refresh tokens carry the same subject but a different "type"
    claim, so one cannot be used where the other is expected. Revocation is
    not checked here; callers layer the blacklist on top.
    """

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self.refresh_ttl = timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)

    def _encode(self, subject: str, token_type: str, expires_delta: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "type": token_type,
            "iat": now,
            "exp": now + expires_delta,
            # Keeps tokens issued within the same second distinct
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_access_token(self, subject: str, expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(subject, ACCESS_TOKEN, expires_delta or self.access_ttl)

    def create_refresh_token(self, subject: str, expires_delta: Optional[timedelta] = None) -> str:
        return self._encode(subject, REFRESH_TOKEN, expires_delta or self.refresh_ttl)

    def create_token_pair(self, subject: str) -> tuple[str, str]:
        return self.create_access_token(subject), self.create_refresh_token(subject)

    def decode(self, token: str, expected_type: Optional[str] = None) -> TokenClaims:
        """
        Verify a token and return its claims.

        Only the configured algorithm is accepted, so tokens signed with any
        other method (including "none") fail signature verification.

        Raises:
            AuthError: If the token is malformed, badly signed, expired, lacks
                the sub/exp claims, or is of the wrong type.
        """
        try:
            data = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.InvalidTokenError as exc:
            raise AuthError("invalid token") from exc

        token_type = data.get("type")
        if expected_type is not None and token_type != expected_type:
            raise AuthError("invalid token")

        try:
            expires_at = datetime.fromtimestamp(int(data["exp"]), tz=timezone.utc).replace(tzinfo=None)
        except (TypeError, ValueError, OverflowError) as exc:
            raise AuthError("invalid token") from exc

        return TokenClaims(subject=data["sub"], expires_at=expires_at, token_type=token_type)
