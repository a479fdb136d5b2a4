"""
Tests for the auth_service package.

- Auth core (`service.py`) against the in-memory repositories
- Token codec and password hasher (`auth.py`)
- SQLAlchemy repositories (`repositories.py`)
- HTTP endpoints through FastAPI's TestClient, including the full
  register → login → logout → reset journey
"""
