import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Query

from .config import Settings
from .dependencies import get_settings

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> str:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):]
    return ""


def require_admin(
    authorization: Optional[str] = Header(None),
    admin_token: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Shared-secret gate for catalog mutations.

    The token comes from `Authorization: Bearer <token>` or the `admin_token`
    query parameter. An unset server secret is a configuration error (500),
    anything else that does not match is a 401.
    """
    provided = _bearer_token(authorization) or (admin_token or "")
    if not settings.admin_token:
        logger.error("Admin request rejected: ADMIN_TOKEN is not configured")
        raise HTTPException(status_code=500, detail="ADMIN_TOKEN is not configured on the server")
    if not hmac.compare_digest(provided.encode(), settings.admin_token.encode()):
        logger.warning("Admin request rejected: invalid token")
        raise HTTPException(status_code=401, detail="Unauthorized")
