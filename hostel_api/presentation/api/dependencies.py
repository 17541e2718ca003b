from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.session_service import SessionService
from ...core.dependencies import get_session_service
from ...domain.models import User

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

_bearer_scheme = HTTPBearer(auto_error=False)


async def require_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    session_service: SessionService = Depends(get_session_service),
) -> User:
    """Resolve the caller from the access-token cookie, or a bearer header as a fallback."""
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials is not None and credentials.scheme.lower() == "bearer":
        token = credentials.credentials
    return await session_service.authenticate(token)
