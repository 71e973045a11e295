from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .errors import UnauthorizedError

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"

_security = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
def get_current_username(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_security),
) -> str:
    """
    Resolve the caller's username from an HS256 bearer token.

    The token must be signed with JWT_SECRET and carry a non-empty
    ``username`` claim; that value is used verbatim as the user's cache
    namespace.

    Raises:
        UnauthorizedError: no token, bad signature/expired token, missing
        claim, or JWT_SECRET not configured.
    """
    secret = request.app.state.settings.jwt_secret
    if not secret:
        logger.warning("jwt_secret_not_configured")
        raise UnauthorizedError()

    if creds is None or not creds.credentials:
        raise UnauthorizedError()

    try:
        payload = jwt.decode(creds.credentials, secret, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        logger.info("token_rejected", error=str(exc))
        raise UnauthorizedError() from exc

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise UnauthorizedError()
    return username
