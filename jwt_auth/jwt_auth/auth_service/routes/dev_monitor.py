"""
Dev Monitor Router - Development-only endpoints for inspecting registered users.
"""
import logging
from typing import List
from fastapi import APIRouter, Request, Depends, HTTPException
from sqlalchemy.orm import Session

from ..config import Settings
from ..db import get_db
from ..deps import get_settings
from ..repositories import SqlUserRepository
from ..schemas import UserResponse

router = APIRouter(prefix="/dev", tags=["dev-monitor"])
logger = logging.getLogger(__name__)


def is_local_request(request: Request) -> bool:
    """Check if request originates from localhost or a private network."""
    if not request.client:
        # No client info, likely an internal request
        return True

    client_ip = request.client.host
    if client_ip in ("127.0.0.1", "::1", "localhost", "testclient"):
        return True
    return client_ip.startswith(("10.", "172.", "192.168."))


@router.get("/users", response_model=List[UserResponse])
def list_users(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    List the public profile of every registered user (development only).

    Raises:
        404: If DEV_MODE is not enabled
    """
    client_host = request.client.host if request.client else "unknown"

    if not settings.DEV_MODE:
        logger.warning("Attempt to access /dev/users with DEV_MODE disabled from IP %s", client_host)
        raise HTTPException(status_code=404, detail="Not found")

    if not is_local_request(request):
        logger.info("Dev user list accessed from non-local IP: %s (allowed in DEV_MODE)", client_host)

    users = SqlUserRepository(db).get_all()
    logger.info("Dev user list accessed: results=%s, ip=%s", len(users), client_host)
    return [UserResponse.model_validate(u) for u in users]
