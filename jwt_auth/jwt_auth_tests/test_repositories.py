"""
Tests for the SQLAlchemy repositories.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError

from jwt_auth.jwt_auth.auth_service.auth import utcnow
from jwt_auth.jwt_auth.auth_service.errors import ConflictError, InternalError, NotFoundError
from jwt_auth.jwt_auth.auth_service.models import BlacklistedToken, PasswordReset, User
from jwt_auth.jwt_auth.auth_service.repositories import (
    SqlBlacklistRepository,
    SqlPasswordResetRepository,
    SqlUserRepository,
)


class FakeClock:
    def __init__(self):
        self.now = utcnow()

    def __call__(self):
        return self.now


def make_user(email="alice@example.com", username="alice"):
    return User(first_name="Alice", last_name="Liddell", username=username, email=email, password="hash")


def test_user_lookups(db_session):
    repo = SqlUserRepository(db_session)
    created = repo.create(make_user())
    assert created.id is not None

    assert repo.find_by_email("alice@example.com").id == created.id
    assert repo.find_by_username("alice").id == created.id
    assert repo.find_by_username_or_email("alice").id == created.id
    assert repo.find_by_username_or_email("alice@example.com").id == created.id
    assert repo.find_by_email("ghost@example.com") is None


def test_user_unique_email_enforced_by_store(db_session):
    repo = SqlUserRepository(db_session)
    repo.create(make_user())

    with pytest.raises(ConflictError):
        repo.create(make_user(username="other"))
    # Session is usable after the rollback
    assert len(repo.get_all()) == 1


def test_update_password(db_session):
    repo = SqlUserRepository(db_session)
    repo.create(make_user())

    repo.update_password("alice@example.com", "new-hash")
    assert repo.find_by_email("alice@example.com").password == "new-hash"

    with pytest.raises(NotFoundError):
        repo.update_password("ghost@example.com", "x")


def test_remove_all(db_session):
    repo = SqlUserRepository(db_session)
    repo.create(make_user())
    repo.create(make_user(email="bob@example.com", username="bob"))

    assert repo.remove_all() == 2
    assert repo.get_all() == []


def test_create_wraps_database_errors(db_session):
    repo = SqlUserRepository(db_session)

    with patch.object(db_session, "commit", side_effect=OperationalError("INSERT", {}, Exception("down"))):
        with pytest.raises(InternalError):
            repo.create(make_user())


def test_blacklist_honours_expiry(db_session):
    clock = FakeClock()
    repo = SqlBlacklistRepository(db_session, clock=clock)

    assert repo.add("token-a", clock.now + timedelta(minutes=5)) is True
    assert repo.add("token-a", clock.now + timedelta(minutes=5)) is False
    assert db_session.query(BlacklistedToken).count() == 1

    assert repo.is_blacklisted("token-a")
    assert not repo.is_blacklisted("token-b")

    clock.now += timedelta(minutes=6)
    assert not repo.is_blacklisted("token-a")


def test_blacklist_add_reports_concurrent_insert(db_session):
    clock = FakeClock()
    repo = SqlBlacklistRepository(db_session, clock=clock)
    expiry = clock.now + timedelta(minutes=5)
    # Row written by another request after our existence check
    db_session.execute(insert(BlacklistedToken).values(token="token-a", expiry=expiry))
    db_session.commit()

    with patch.object(db_session, "get", return_value=None):
        assert repo.add("token-a", expiry) is False

    assert db_session.query(BlacklistedToken).count() == 1
    assert repo.is_blacklisted("token-a")


def test_user_lookup_ends_read_transaction(db_session):
    repo = SqlUserRepository(db_session)
    repo.create(make_user())

    user = repo.find_by_username_or_email("alice")
    assert not db_session.in_transaction()
    assert user.password == "hash"
    assert repo.find_by_email("ghost@example.com") is None
    assert not db_session.in_transaction()


def test_blacklist_purge_expired(db_session):
    clock = FakeClock()
    repo = SqlBlacklistRepository(db_session, clock=clock)
    repo.add("dead", clock.now - timedelta(seconds=1))
    repo.add("alive", clock.now + timedelta(minutes=5))

    assert repo.purge_expired() == 1
    assert [t.token for t in db_session.query(BlacklistedToken).all()] == ["alive"]


def test_reset_token_upsert_by_email(db_session):
    clock = FakeClock()
    repo = SqlPasswordResetRepository(db_session, clock=clock)
    expiry = clock.now + timedelta(hours=1)

    repo.store_token("alice@example.com", "first", expiry)
    repo.store_token("alice@example.com", "second", expiry)

    assert db_session.query(PasswordReset).count() == 1
    assert repo.find_email_by_token("first") is None
    assert repo.find_email_by_token("second") == "alice@example.com"


def test_reset_token_expiry_and_invalidation(db_session):
    clock = FakeClock()
    repo = SqlPasswordResetRepository(db_session, clock=clock)
    repo.store_token("alice@example.com", "tok", clock.now + timedelta(hours=1))

    repo.invalidate_token("tok")
    assert repo.find_email_by_token("tok") is None

    repo.store_token("alice@example.com", "tok2", clock.now + timedelta(hours=1))
    clock.now += timedelta(hours=1, seconds=1)
    assert repo.find_email_by_token("tok2") is None
