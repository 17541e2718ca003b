from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from ...domain.errors import (
    AccountInactiveError,
    CorruptSessionError,
    InvalidCredentialsError,
    MissingTokenError,
    SessionExpiredError,
    TokenInvalidError,
    ValidationError,
)
from ...domain.models import Avatar, Role, User, parse_session_user, serialize_session_user
from ...domain.ports.persistence import UserRepository
from ...domain.ports.session_cache import SessionCache
from ...infrastructure.errors import ConstraintViolation
from ...services.password_hasher import PasswordHasher
from ...services.token_codec import TokenVerificationError, sign_token, verify_token
from .activation_service import normalize_email

logger = logging.getLogger(__name__)

SOCIAL_AVATAR_PUBLIC_ID = "social_auth_avatar"


@dataclass(slots=True)
class IssuedSession:
    user: User
    access_token: str
    refresh_token: str


class SessionService:
    """Issues, renews and revokes access/refresh token pairs.

    The session cache is the single source of truth for liveness: a refresh
    token is only honoured while a snapshot for its user id is cached.
    """

    def __init__(
        self,
        users: UserRepository,
        cache: SessionCache,
        hasher: PasswordHasher,
        *,
        access_secret: str,
        refresh_secret: str,
        access_token_exp_minutes: int = 60 * 24 * 3,
        refresh_token_exp_minutes: int = 60 * 24 * 7,
        session_ttl_seconds: int = 604800,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not access_secret or not refresh_secret:
            raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be configured.")
        if access_secret == refresh_secret:
            raise RuntimeError("Access and refresh tokens must use different secrets.")
        self._users = users
        self._cache = cache
        self._hasher = hasher
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = timedelta(minutes=access_token_exp_minutes)
        self.refresh_ttl = timedelta(minutes=refresh_token_exp_minutes)
        self._session_ttl_seconds = session_ttl_seconds
        self._algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    # ------------------------------------------------------------------
    async def login(self, email: Optional[str], password: Optional[str]) -> IssuedSession:
        if not email or not password:
            raise ValidationError("Please enter email and password")

        user = self._users.get_by_email(normalize_email(email))
        if user is None:
            raise InvalidCredentialsError()
        # social identities have no digest, so verify() refuses them here too
        if not await asyncio.to_thread(self._hasher.verify, password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            raise AccountInactiveError()

        logger.info("User %s logged in", user.id)
        return await self._issue(user)

    async def social_auth(self, name: str, email: str, avatar: Optional[str] = None) -> IssuedSession:
        email_clean = normalize_email(email or "")
        if not email_clean or not name or not name.strip():
            raise ValidationError("Please enter name and email")

        user = self._users.get_by_email(email_clean)
        if user is None:
            try:
                user = self._users.create(
                    name=name.strip(),
                    email=email_clean,
                    phone=None,
                    password_hash=None,
                    avatar=Avatar(public_id=SOCIAL_AVATAR_PUBLIC_ID, url=avatar),
                    role=Role.USER,
                    is_active=True,
                )
                logger.info("Created social identity %s", user.id)
            except ConstraintViolation:
                # created concurrently by another sign-in; use that row
                user = self._users.get_by_email(email_clean)
                if user is None:
                    raise
        if not user.is_active:
            # the provider has proven ownership of the address, so an
            # unconfirmed registration's password is not trusted
            self._users.claim_pending(user.id)
            user = self._users.get_by_id(user.id) or user
            logger.info("Social sign-in claimed pending user %s", user.id)

        return await self._issue(user)

    async def logout(self, user_id: Optional[int]) -> None:
        if user_id is None:
            return
        await self._cache.delete(user_id)
        logger.info("User %s logged out", user_id)

    async def refresh(self, refresh_token: Optional[str]) -> IssuedSession:
        if not refresh_token:
            raise MissingTokenError()

        user_id = self._verified_user_id(
            refresh_token, self._refresh_secret, "Invalid or expired refresh token"
        )
        user = await self._load_session(user_id)
        return await self._issue(user, renewal=True)

    async def authenticate(self, access_token: Optional[str]) -> User:
        """Resolve the live session behind an access token."""
        if not access_token:
            raise MissingTokenError()

        user_id = self._verified_user_id(
            access_token, self._access_secret, "Access token is not valid"
        )
        return await self._load_session(user_id)

    # ------------------------------------------------------------------
    def _verified_user_id(self, token: str, secret: str, message: str) -> int:
        try:
            payload: Dict[str, Any] = verify_token(token, secret, algorithm=self._algorithm)
        except TokenVerificationError as exc:
            raise TokenInvalidError(message) from exc
        user_id = payload.get("id")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise TokenInvalidError(message)
        return user_id

    async def _load_session(self, user_id: int) -> User:
        raw = await self._cache.get(user_id)
        if raw is None:
            raise SessionExpiredError()
        try:
            user = parse_session_user(raw)
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding unreadable session snapshot for user %s", user_id)
            raise CorruptSessionError() from exc
        if user.id != user_id:
            raise CorruptSessionError()
        return user

    async def _issue(self, user: User, renewal: bool = False) -> IssuedSession:
        now = self._clock()
        claims = {"id": user.id}
        access_token = sign_token(
            claims, self._access_secret, self.access_ttl, algorithm=self._algorithm, now=now
        )
        refresh_token = sign_token(
            claims, self._refresh_secret, self.refresh_ttl, algorithm=self._algorithm, now=now
        )
        snapshot = serialize_session_user(user)
        if renewal:
            # a logout landing between the read and this write must stay final
            if not await self._cache.renew(user.id, snapshot, self._session_ttl_seconds):
                raise SessionExpiredError()
        else:
            await self._cache.set(user.id, snapshot, self._session_ttl_seconds)
        return IssuedSession(user=user, access_token=access_token, refresh_token=refresh_token)
