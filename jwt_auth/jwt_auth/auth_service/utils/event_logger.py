"""
Event logger utility for authentication events.
"""
from datetime import datetime, timezone
import sys
import logging
import os

logger = logging.getLogger("auth_events")


ALLOWED_EVENT_TYPES = {
    "register",
    "login_success",
    "login_failure",
    "logout",
    "token_refresh",
    "password_reset_requested",
    "password_reset"
}


def configure_logging(log_level: str = "INFO", log_dir: str = None) -> None:
    """
    Configure stdout logging plus an auth_events.log file under log_dir.

    File logging is skipped with a warning when the directory cannot be
    created.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(log_dir, "auth_events.log")))
        except OSError as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers
    )


def log_auth_event(event_type: str, email: str, **metadata) -> None:
    """
    Log an authentication event.

    Args:
        event_type: One of ALLOWED_EVENT_TYPES
        email: Email (token subject) of the user the event concerns
        **metadata: Optional additional context, logged as key=value pairs

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    extra = " ".join(f"{k}={v}" for k, v in sorted(metadata.items()))
    logger.info(
        "AUTH %s email=%s timestamp=%s%s",
        event_type, email, datetime.now(timezone.utc).isoformat(), f" {extra}" if extra else ""
    )
