"""API router for registration, activation and cookie sessions."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status

from hostel_api.application.services.activation_service import ActivationService
from hostel_api.application.services.session_service import IssuedSession, SessionService
from hostel_api.core.config import Settings
from hostel_api.core.dependencies import (
    get_activation_service,
    get_session_service,
    get_settings,
    get_user_repository,
)
from hostel_api.domain.errors import NotFoundError
from hostel_api.domain.models import Avatar, User, public_user_dict
from hostel_api.domain.ports.persistence import UserRepository
from hostel_api.presentation.api.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    require_current_user,
)
from hostel_api.presentation.api.schemas.user_schemas import (
    ActivationRequest,
    ResendActivationRequest,
    SocialAuthRequest,
    UserLoginRequest,
    UserRegisterRequest,
)

router = APIRouter(tags=["users"])


def _set_session_cookies(
    response: Response,
    issued: IssuedSession,
    session_service: SessionService,
    settings: Settings,
) -> None:
    for key, value, ttl in (
        (ACCESS_COOKIE, issued.access_token, session_service.access_ttl),
        (REFRESH_COOKIE, issued.refresh_token, session_service.refresh_ttl),
    ):
        response.set_cookie(
            key,
            value,
            max_age=int(ttl.total_seconds()),
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )


def _clear_session_cookies(response: Response, settings: Settings) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key,
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )


@router.get("/api")
async def api_status() -> Dict[str, Any]:
    return {"success": True, "message": "API working"}


@router.post("/registration", status_code=status.HTTP_201_CREATED)
async def register(
    request: UserRegisterRequest,
    activation_service: ActivationService = Depends(get_activation_service),
) -> Dict[str, Any]:
    """Create a pending account and email its activation code."""
    avatar = None
    if request.avatar and (request.avatar.public_id or request.avatar.url):
        avatar = Avatar(public_id=request.avatar.public_id, url=request.avatar.url)

    ticket = await activation_service.register(
        name=request.name,
        email=request.email,
        phone=request.phone,
        password=request.password,
        avatar=avatar,
    )
    return {
        "success": True,
        "message": f"Please check {ticket.email} to activate your account",
        "activationToken": ticket.token,
    }


@router.post("/activate-user")
async def activate_user(
    request: ActivationRequest,
    activation_service: ActivationService = Depends(get_activation_service),
) -> Dict[str, Any]:
    await activation_service.activate(request.activation_token, request.activation_code)
    return {"success": True, "message": "Account activated successfully"}


@router.post("/resend-activation")
async def resend_activation(
    request: ResendActivationRequest,
    activation_service: ActivationService = Depends(get_activation_service),
) -> Dict[str, Any]:
    ticket = await activation_service.resend_activation(request.email)
    return {
        "success": True,
        "message": f"Please check {ticket.email} to activate your account",
        "activationToken": ticket.token,
    }


@router.post("/login")
async def login(
    request: UserLoginRequest,
    response: Response,
    session_service: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Exchange credentials for an access/refresh cookie pair."""
    issued = await session_service.login(request.email, request.password)
    _set_session_cookies(response, issued, session_service, settings)
    return {
        "success": True,
        "user": public_user_dict(issued.user),
        "accessToken": issued.access_token,
    }


@router.post("/social-auth")
async def social_auth(
    request: SocialAuthRequest,
    response: Response,
    session_service: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    issued = await session_service.social_auth(request.name, request.email, request.avatar)
    _set_session_cookies(response, issued, session_service, settings)
    return {
        "success": True,
        "user": public_user_dict(issued.user),
        "accessToken": issued.access_token,
    }


@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(require_current_user),
    session_service: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    _clear_session_cookies(response, settings)
    await session_service.logout(user.id)
    return {"status": True, "message": "Logged out successfully"}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    session_service: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Rotate both tokens using the refresh-token cookie."""
    issued = await session_service.refresh(request.cookies.get(REFRESH_COOKIE))
    _set_session_cookies(response, issued, session_service, settings)
    return {"success": True, "status": "Success", "accessToken": issued.access_token}


@router.get("/me")
async def get_user_info(
    user: User = Depends(require_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    stored = users.get_by_id(user.id)
    if stored is None:
        raise NotFoundError("User not found")
    return {"success": True, "user": public_user_dict(stored)}
