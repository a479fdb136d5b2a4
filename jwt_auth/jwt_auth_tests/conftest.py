"""
Shared fixtures: an isolated in-memory SQLite database per test, test
settings, and a recording email sender wired into the FastAPI app through
dependency overrides.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jwt_auth.jwt_auth.auth_service.config import Settings
from jwt_auth.jwt_auth.auth_service.db import Base, get_db
from jwt_auth.jwt_auth.auth_service.deps import get_email_sender, get_settings
from jwt_auth.jwt_auth.auth_service.errors import EmailDeliveryError
from jwt_auth.jwt_auth.auth_service.main import app
from jwt_auth.jwt_auth.auth_service import models  # noqa: F401

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"


class RecordingEmailSender:
    """Collects reset emails instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_password_reset_email(self, to, token):
        if self.fail:
            raise EmailDeliveryError("smtp unavailable")
        self.sent.append((to, token))


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        SECRET_KEY=TEST_SECRET,
        DEV_MODE=True,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def email_sender():
    return RecordingEmailSender()


@pytest.fixture
def client(session_factory, test_settings, email_sender):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    # No context manager: the lifespan would initialize the default database
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    def _register(email="alice@example.com", password="Secret123!", user_name=None, first_name="Alice"):
        payload = {
            "first_name": first_name,
            "last_name": "Liddell",
            "user_name": user_name or email.split("@")[0],
            "email": email,
            "password": password,
            "confirm_password": password,
        }
        response = client.post("/register", json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _register
