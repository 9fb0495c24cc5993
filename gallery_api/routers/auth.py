"""
Authentication router: registration, login, logout and profile.
"""
import time
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from gallery_api.config import get_settings
from gallery_api.dependencies.auth import get_current_session_id, get_current_user
from gallery_api.exceptions import ConflictError
from gallery_api.middlewares.rate_limit_middleware import rate_limit
from gallery_api.models.user import User
from gallery_api.schemas.user import (
    ProfileUpdate,
    Token,
    UserCreate,
    UserLogin,
    UserResponse,
    UserSummary,
)
from gallery_api.services.auth import AuthService
from gallery_api.store import JsonDocumentStore, get_store
from gallery_api.utils.client_ip import get_client_ip
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.prometheus_metrics import (
    login_duration_seconds,
    user_login_total,
    user_registration_total,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def to_response(user: User) -> UserResponse:
    """Public view of a user (no password hash or salt)."""
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        name=user.name,
        avatar_letter=user.avatar_letter,
        preferences=user.preferences,
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    user_data: UserCreate,
    store: JsonDocumentStore = Depends(get_store),
) -> UserResponse:
    """
    Register a new user account.

    - **name**: Display name
    - **username**: Unique, case-insensitive
    - **email**: Unique, case-insensitive
    - **password**: At least 6 characters
    """
    try:
        user = await AuthService(store).register(user_data)
    except ConflictError as e:
        user_registration_total.labels(result="failure").inc()
        log_warning("User registration failed", event="user_registration", error_message=e.message)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    user_registration_total.labels(result="success").inc()
    log_info("User registration completed", event="user_registration", user_id=user.id)
    return to_response(user)


@router.post(
    "/login",
    response_model=Token,
    summary="Login to get access token",
)
@rate_limit(f"{get_settings().rate_limit_login_per_minute}/minute")
async def login(
    request: Request,
    login_data: UserLogin,
    store: JsonDocumentStore = Depends(get_store),
) -> Token:
    """
    Login with username or email and password.

    Records an active session for this device and returns a JWT bound to
    it. Send it as `Bearer <token>` in the Authorization header.
    """
    start = time.perf_counter()
    result = await AuthService(store).login(
        login_data.identifier,
        login_data.password,
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request),
    )
    outcome = "success" if result else "failure"
    login_duration_seconds.labels(result=outcome).observe(time.perf_counter() - start)
    user_login_total.labels(result=outcome).inc()

    if not result:
        # 무차별 대입 탐지용 WARN 로그
        log_warning("Login failed - invalid credentials", event="user_login")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username/email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token, user = result
    log_info("User login successful", event="user_login", user_id=user.id)
    return token


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Logout (remove the current session)",
)
async def logout(
    current_user: User = Depends(get_current_user),
    session_id: str = Depends(get_current_session_id),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await AuthService(store).logout(current_user.id, session_id)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
)
async def get_me(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """
    Get the current authenticated user's profile.

    Requires authentication via Bearer token.
    """
    return to_response(current_user)


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update profile",
)
async def update_me(
    update: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> UserResponse:
    """
    Update the display name and optionally the password.

    - **name**: New display name (also sets the avatar letter)
    - **newPassword**: Optional new login password
    """
    user = await AuthService(store).update_profile(current_user.id, update.name, update.new_password)
    return to_response(user)


@router.get(
    "/users",
    response_model=List[UserSummary],
    summary="Users available for direct sharing",
)
async def users_for_sharing(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[UserSummary]:
    users = await AuthService(store).users_for_sharing(current_user.id)
    return [UserSummary(id=u.id, name=u.name, username=u.username) for u in users]
