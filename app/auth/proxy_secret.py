"""
Shared-secret Bearer authorization.

Callers of /import must send ``Authorization: Bearer <PROXY_SECRET>``.
The check runs as a FastAPI dependency, before any Alto call is made.
"""

import hmac
import logging
from typing import Optional

from fastapi import Header

from app.core.api_errors import ProxyAuthorizationError
from app.core.config import get_settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def verify_bearer(authorization: Optional[str], secret: Optional[str]) -> bool:
    """Return True if the Authorization header carries exactly the secret."""
    if not authorization or not secret:
        return False
    if not authorization.startswith(BEARER_PREFIX):
        return False
    presented = authorization[len(BEARER_PREFIX):]
    return hmac.compare_digest(presented.encode("utf-8"), secret.encode("utf-8"))


def require_proxy_secret(authorization: Optional[str] = Header(None)) -> None:
    """
    FastAPI dependency guarding proxy endpoints.

    Raises:
        ProxyAuthorizationError: If the Bearer secret is missing or wrong
    """
    if not verify_bearer(authorization, get_settings().proxy_secret):
        logger.warning("Rejected request with missing or invalid proxy secret")
        raise ProxyAuthorizationError()
