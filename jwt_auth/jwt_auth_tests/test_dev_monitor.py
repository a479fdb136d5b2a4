"""
Unit tests for dev monitor endpoint.
"""
from unittest.mock import Mock

from jwt_auth.jwt_auth.auth_service.routes.dev_monitor import is_local_request


def test_dev_users_hidden_without_dev_mode(client, register_user, test_settings):
    register_user()
    test_settings.DEV_MODE = False

    response = client.get("/dev/users")
    assert response.status_code == 404


def test_dev_users_lists_public_profiles(client, register_user):
    register_user(email="alice@example.com")
    register_user(email="bob@example.com", first_name="Bob")

    response = client.get("/dev/users")
    assert response.status_code == 200
    users = response.json()
    assert [u["email"] for u in users] == ["alice@example.com", "bob@example.com"]
    assert all("password" not in u for u in users)


def test_is_local_request():
    request = Mock()
    for host in ("127.0.0.1", "::1", "10.0.0.4", "172.17.0.2", "192.168.1.10"):
        request.client.host = host
        assert is_local_request(request)

    request.client.host = "8.8.8.8"
    assert not is_local_request(request)

    request.client = None
    assert is_local_request(request)
