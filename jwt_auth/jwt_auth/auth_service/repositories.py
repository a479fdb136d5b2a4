"""
Persistence interfaces consumed by the auth core, and their SQLAlchemy
implementations.

The core depends only on the Protocol classes; the API wires in the SQL
repositories bound to the request's session, tests may use the in-memory
versions from `memory.py`.
"""
from datetime import datetime
from typing import Callable, List, Optional, Protocol
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import utcnow
from .errors import ConflictError, InternalError, NotFoundError
from .models import BlacklistedToken, PasswordReset, User

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class UserRepository(Protocol):
    def create(self, user: User) -> User: ...

    def find_by_email(self, email: str) -> Optional[User]: ...

    def find_by_username(self, username: str) -> Optional[User]: ...

    def find_by_username_or_email(self, identifier: str) -> Optional[User]: ...

    def update_password(self, email: str, password_hash: str) -> None: ...

    def get_all(self) -> List[User]: ...

    def remove_all(self) -> int: ...


class BlacklistRepository(Protocol):
    def add(self, token: str, expiry: datetime) -> bool: ...

    def is_blacklisted(self, token: str) -> bool: ...

    def purge_expired(self) -> int: ...


class PasswordResetRepository(Protocol):
    def store_token(self, email: str, token: str, expiry: datetime) -> None: ...

    def find_email_by_token(self, token: str) -> Optional[str]: ...

    def invalidate_token(self, token: str) -> None: ...


class SqlUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user: User) -> User:
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration
            self.db.rollback()
            raise ConflictError("user already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to create user email=%s: %s", user.email, e)
            raise InternalError("failed to create user") from e
        self.db.refresh(user)
        return user

    def _release(self, user: Optional[User]) -> Optional[User]:
        # Lookups hand back a detached row and end their read transaction, so
        # no connection stays checked out while the caller hashes passwords
        if user is not None:
            self.db.expunge(user)
        self.db.commit()
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self._release(self.db.query(User).filter(User.email == email).first())

    def find_by_username(self, username: str) -> Optional[User]:
        return self._release(self.db.query(User).filter(User.username == username).first())

    def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        return self._release(
            self.db.query(User)
            .filter(or_(User.username == identifier, User.email == identifier))
            .first()
        )

    def update_password(self, email: str, password_hash: str) -> None:
        try:
            updated = (
                self.db.query(User)
                .filter(User.email == email)
                .update({User.password: password_hash}, synchronize_session="fetch")
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to update password email=%s: %s", email, e)
            raise InternalError("failed to update password") from e
        if not updated:
            raise NotFoundError("user not found")

    def get_all(self) -> List[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def remove_all(self) -> int:
        try:
            removed = self.db.query(User).delete()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("failed to remove users") from e
        return removed


class SqlBlacklistRepository:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def add(self, token: str, expiry: datetime) -> bool:
        """Record token as revoked. Returns False if it was already recorded."""
        if self.db.get(BlacklistedToken, token) is not None:
            return False
        try:
            self.db.add(BlacklistedToken(token=token, expiry=expiry))
            self.db.commit()
        except IntegrityError:
            # Revoked concurrently by another request
            self.db.rollback()
            return False
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to blacklist token: %s", e)
            raise InternalError("failed to revoke token") from e
        return True

    def is_blacklisted(self, token: str) -> bool:
        entry = self.db.get(BlacklistedToken, token)
        if entry is None:
            return False
        return self.clock() < entry.expiry

    def purge_expired(self) -> int:
        try:
            removed = (
                self.db.query(BlacklistedToken)
                .filter(BlacklistedToken.expiry <= self.clock())
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("failed to purge blacklist") from e
        if removed:
            logger.info("Purged %s expired blacklist entries", removed)
        return removed


class SqlPasswordResetRepository:
    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    def store_token(self, email: str, token: str, expiry: datetime) -> None:
        try:
            # Upsert by primary key (email): last request wins
            self.db.merge(PasswordReset(email=email, token=token, expiry=expiry))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to store reset token email=%s: %s", email, e)
            raise InternalError("failed to store password reset token") from e

    def find_email_by_token(self, token: str) -> Optional[str]:
        entry = (
            self.db.query(PasswordReset)
            .filter(PasswordReset.token == token, PasswordReset.expiry > self.clock())
            .first()
        )
        return entry.email if entry else None

    def invalidate_token(self, token: str) -> None:
        try:
            self.db.query(PasswordReset).filter(PasswordReset.token == token).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to invalidate reset token: %s", e)
            raise InternalError("failed to invalidate password reset token") from e
