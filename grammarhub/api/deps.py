"""
API dependency helpers.

Admin identity resolution and translation of service failures to HTTP errors.
"""
import hmac
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from grammarhub.db.database import get_db
from grammarhub.db.repositories import registration as registration_repo
from grammarhub.utils.settings import get_settings

logger = logging.getLogger(__name__)

API_KEY_ACTOR = "api-key"

# Service failure codes -> HTTP status. Anything unmapped uses the caller's default.
ERROR_STATUS = {
    "missing_fields": status.HTTP_400_BAD_REQUEST,
    "invalid_status": status.HTTP_400_BAD_REQUEST,
    "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
    "not_approved": status.HTTP_403_FORBIDDEN,
    "not_verified": status.HTTP_403_FORBIDDEN,
    "registration_disabled": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
}


def raise_for_failure(result: Dict[str, Any], default_status: int = status.HTTP_400_BAD_REQUEST) -> Dict[str, Any]:
    """Return ``result`` unchanged on success, otherwise raise with it as the detail."""
    if result.get("success"):
        return result
    code = result.get("code")
    raise HTTPException(status_code=ERROR_STATUS.get(code, default_status), detail=result)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_admin(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> str:
    """Resolve the admin actor for a request.

    Accepts either the configured ``ADMIN_API_KEY`` or the active session
    token of an approved account whose role is ``admin`` (or whose email is
    listed in ``ADMIN_EMAILS``). Returns the actor label used in audit logs.
    """
    settings = get_settings()
    if x_api_key:
        if settings.admin_api_key and hmac.compare_digest(x_api_key, settings.admin_api_key):
            return API_KEY_ACTOR
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    row = registration_repo.get_by_session_token(db, token)
    if row is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")

    is_admin = (row.role or "").lower() == "admin" or row.email.lower() in settings.admin_emails
    if not is_admin or str(row.status or "").lower() != "approved":
        logger.warning("admin_access_denied", extra={"student_id": row.student_id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return row.student_id
