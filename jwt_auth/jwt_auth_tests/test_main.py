"""Tests for the uvicorn entry point."""
from unittest.mock import patch

from jwt_auth.jwt_auth.auth_service import main as app_main
from jwt_auth.jwt_auth.auth_service.config import Settings


def test_main_serves_app_with_configured_host_and_port():
    settings = Settings(_env_file=None, HOST="127.0.0.1", PORT=9090, LOG_LEVEL="DEBUG")

    with patch.object(app_main, "settings", settings), patch("uvicorn.run") as run:
        app_main.main()

    run.assert_called_once_with(app_main.app, host="127.0.0.1", port=9090, log_level="debug")
