from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..application.services.activation_service import ActivationService
from ..application.services.session_service import SessionService
from ..domain.ports.persistence import UserRepository
from ..domain.ports.session_cache import SessionCache
from ..infrastructure.cache.memory_session_cache import MemorySessionCache
from ..infrastructure.cache.redis_session_cache import RedisSessionCache
from ..infrastructure.repositories.user_repository import UserRepository as SQLiteUserRepository
from ..services.email_service import EmailService
from ..services.password_hasher import PasswordHasher
from .config import Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    user_repository: UserRepository
    session_cache: SessionCache
    password_hasher: PasswordHasher
    email_service: EmailService
    activation_service: ActivationService
    session_service: SessionService


def build_session_cache(settings: Settings) -> SessionCache:
    if settings.redis_url:
        cache = RedisSessionCache(settings.redis_url, key_prefix=settings.session_key_prefix)
        cache.verify_connection()
        return cache
    if not settings.allow_memory_session_cache:
        raise RuntimeError(
            "REDIS_URL is required for sessions; set ALLOW_MEMORY_SESSION_CACHE=true for a local in-process cache."
        )
    logger.warning("REDIS_URL not set; sessions are kept in process memory")
    return MemorySessionCache()


def build_container(
    settings: Settings,
    *,
    user_repository: Optional[UserRepository] = None,
    session_cache: Optional[SessionCache] = None,
    email_service: Optional[EmailService] = None,
) -> ApplicationContainer:
    users = user_repository or SQLiteUserRepository(settings.database_path)
    cache = session_cache or build_session_cache(settings)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    mailer = email_service or EmailService(
        from_name=settings.app_name,
        activation_minutes=settings.activation_token_exp_minutes,
    )

    activation_service = ActivationService(
        users,
        hasher,
        mailer,
        secret=settings.activation_secret,
        token_exp_minutes=settings.activation_token_exp_minutes,
        algorithm=settings.jwt_algorithm,
    )
    session_service = SessionService(
        users,
        cache,
        hasher,
        access_secret=settings.access_token_secret,
        refresh_secret=settings.refresh_token_secret,
        access_token_exp_minutes=settings.access_token_exp_minutes,
        refresh_token_exp_minutes=settings.refresh_token_exp_minutes,
        session_ttl_seconds=settings.session_ttl_seconds,
        algorithm=settings.jwt_algorithm,
    )

    return ApplicationContainer(
        settings=settings,
        user_repository=users,
        session_cache=cache,
        password_hasher=hasher,
        email_service=mailer,
        activation_service=activation_service,
        session_service=session_service,
    )
