"""
In-memory implementations of the repository interfaces.

Used by unit tests of the auth core and for running the service without a
database. They follow the same semantics as the SQL repositories, including
unique email/username and the expiry checks.
"""
from datetime import datetime
from typing import Dict, List, Optional
import itertools
import threading

from .auth import utcnow
from .errors import ConflictError, NotFoundError
from .models import User
from .repositories import Clock


class InMemoryUserRepository:
    def __init__(self):
        self.users: Dict[int, User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def create(self, user: User) -> User:
        with self._lock:
            for existing in self.users.values():
                if existing.email == user.email:
                    raise ConflictError("user already exists")
                if user.username and existing.username == user.username:
                    raise ConflictError("username already taken")
            user.id = next(self._ids)
            self.users[user.id] = user
            return user

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self.users.values() if u.email == email), None)

    def find_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self.users.values() if u.username == username), None)

    def find_by_username_or_email(self, identifier: str) -> Optional[User]:
        with self._lock:
            return next(
                (u for u in self.users.values() if identifier in (u.username, u.email)),
                None,
            )

    def update_password(self, email: str, password_hash: str) -> None:
        with self._lock:
            user = self.find_by_email(email)
            if user is None:
                raise NotFoundError("user not found")
            user.password = password_hash

    def get_all(self) -> List[User]:
        with self._lock:
            return [self.users[k] for k in sorted(self.users)]

    def remove_all(self) -> int:
        with self._lock:
            removed = len(self.users)
            self.users.clear()
            return removed


class InMemoryBlacklistRepository:
    def __init__(self, clock: Clock = utcnow):
        self.entries: Dict[str, datetime] = {}
        self.clock = clock
        self._lock = threading.Lock()

    def add(self, token: str, expiry: datetime) -> bool:
        with self._lock:
            if token in self.entries:
                return False
            self.entries[token] = expiry
            return True

    def is_blacklisted(self, token: str) -> bool:
        with self._lock:
            expiry = self.entries.get(token)
        return expiry is not None and self.clock() < expiry

    def purge_expired(self) -> int:
        now = self.clock()
        with self._lock:
            dead = [t for t, expiry in self.entries.items() if expiry <= now]
            for token in dead:
                del self.entries[token]
        return len(dead)


class InMemoryPasswordResetRepository:
    def __init__(self, clock: Clock = utcnow):
        # email -> (token, expiry)
        self.entries: Dict[str, tuple[str, datetime]] = {}
        self.clock = clock
        self._lock = threading.Lock()

    def store_token(self, email: str, token: str, expiry: datetime) -> None:
        with self._lock:
            self.entries[email] = (token, expiry)

    def find_email_by_token(self, token: str) -> Optional[str]:
        now = self.clock()
        with self._lock:
            for email, (stored, expiry) in self.entries.items():
                if stored == token and expiry > now:
                    return email
        return None

    def invalidate_token(self, token: str) -> None:
        with self._lock:
            for email, (stored, _) in list(self.entries.items()):
                if stored == token:
                    del self.entries[email]
