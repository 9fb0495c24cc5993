"""
Authentication dependencies for FastAPI.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from gallery_api.models.user import User
from gallery_api.services.auth import AuthService
from gallery_api.services.sessions import SessionService
from gallery_api.store import JsonDocumentStore, get_store
from gallery_api.utils.prometheus_metrics import active_sessions
from gallery_api.utils.security import decode_access_token, verify_private_access_token

logger = logging.getLogger("gallery_api.auth")

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)

PRIVATE_TOKEN_HEADER = "X-Private-Token"


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: JsonDocumentStore = Depends(get_store),
) -> User:
    """
    Dependency to get the current authenticated user.

    The token must be valid and its session must still exist; the session's
    ``lastActiveTimestamp`` is refreshed on every authenticated request.

    Returns:
        Current authenticated User

    Raises:
        HTTPException: If token is missing, invalid, its session was removed
            or the user no longer exists
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        logger.warning("Auth failed", extra={"event": "auth", "reason": "no_token"})
        raise credentials_exception

    token_payload = decode_access_token(credentials.credentials)
    if token_payload is None:
        logger.warning("Auth failed", extra={"event": "auth", "reason": "invalid_or_expired_token"})
        raise credentials_exception

    if not await SessionService(store).touch(token_payload.sid, token_payload.sub):
        logger.warning("Auth failed", extra={"event": "auth", "reason": "session_revoked", "user_id": token_payload.sub})
        raise credentials_exception

    user = await AuthService(store).get_user_by_id(token_payload.sub)
    if user is None:
        logger.warning("Auth failed", extra={"event": "auth", "reason": "user_not_found", "user_id": token_payload.sub})
        raise credentials_exception

    request.state.user_id = user.id
    request.state.session_id = token_payload.sid
    # ActiveSessionsMiddleware가 요청 종료 시 감소
    if not getattr(request.state, "_active_sessions_metric_inc", False):
        active_sessions.inc()
        request.state._active_sessions_metric_inc = True
    return user


async def get_current_session_id(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> str:
    """Session id of the token used for this request."""
    return request.state.session_id


async def require_private_access(
    x_private_token: Optional[str] = Header(None, alias=PRIVATE_TOKEN_HEADER),
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency for private folder contents.

    Requires the token returned by /private/unlock in the X-Private-Token header.

    Raises:
        HTTPException: 403 if the folder is locked for this request
    """
    if not x_private_token or not verify_private_access_token(x_private_token, current_user.id):
        logger.warning("Private folder access denied", extra={"event": "private", "user_id": current_user.id})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Private folder is locked",
        )
    return current_user
