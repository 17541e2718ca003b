from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ...domain.errors import (
    AlreadyActiveError,
    CodeMismatchError,
    DuplicateEmailError,
    NotFoundError,
    TokenInvalidError,
    ValidationError,
)
from ...domain.models import Avatar, Role, User
from ...domain.ports.persistence import UserRepository
from ...infrastructure.errors import ConstraintViolation
from ...services.email_service import EmailService
from ...services.password_hasher import PasswordHasher
from ...services.token_codec import TokenVerificationError, sign_token, verify_token

logger = logging.getLogger(__name__)

_INVALID_TOKEN_MESSAGE = "Activation token expired or invalid"


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(slots=True)
class ActivationTicket:
    """Result of a registration: the pending identity and its activation credentials."""

    user: Optional[User]
    token: str
    code: Optional[str]
    email: str


class ActivationService:
    """Registers pending identities and confirms them with an emailed code.

    A registration writes an inactive row straight away; the activation token
    only references that row's id, so confirming it is a conditional flip of
    ``is_active`` and a replayed token is rejected as already active.
    """

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        email_service: EmailService,
        *,
        secret: str,
        token_exp_minutes: int = 5,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not secret:
            raise RuntimeError("ACTIVATION_SECRET not configured.")
        self._users = users
        self._hasher = hasher
        self._email = email_service
        self._secret = secret
        self._ttl = timedelta(minutes=token_exp_minutes)
        self._algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    # ------------------------------------------------------------------
    async def register(
        self,
        name: str,
        email: str,
        phone: str,
        password: str,
        avatar: Optional[Avatar] = None,
    ) -> ActivationTicket:
        email_clean = normalize_email(email or "")
        if not name or not name.strip() or not email_clean or not phone or not password:
            raise ValidationError("Please enter name, email, phone and password")
        if self._users.get_by_email(email_clean):
            raise DuplicateEmailError()

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        try:
            user = self._users.create(
                name=name.strip(),
                email=email_clean,
                phone=phone.strip(),
                password_hash=password_hash,
                avatar=avatar,
                role=Role.USER,
                is_active=False,
            )
        except ConstraintViolation as exc:
            # lost the race against a concurrent registration for the same address
            raise DuplicateEmailError() from exc

        logger.info("Registered pending user %s", user.id)
        return await self._issue_ticket(user)

    async def resend_activation(self, email: str) -> ActivationTicket:
        """Mint a fresh code for a pending registration.

        Unknown and already active addresses get a token that no code can
        redeem, so the answer does not reveal which addresses have accounts.
        """
        email_clean = normalize_email(email or "")
        if not email_clean:
            raise ValidationError("Please enter your email")
        user = self._users.get_by_email(email_clean)
        if user is None or user.is_active:
            logger.info("Activation resend requested for an address with no pending account")
            return self._unredeemable_ticket(email_clean)
        return await self._issue_ticket(user)

    async def activate(self, activation_token: Optional[str], activation_code: Optional[str]) -> User:
        if not activation_token or not activation_code:
            raise ValidationError("Invalid activation request")

        try:
            payload = verify_token(activation_token, self._secret, algorithm=self._algorithm)
        except TokenVerificationError as exc:
            raise TokenInvalidError(_INVALID_TOKEN_MESSAGE) from exc

        user_id = payload.get("user_id")
        code_digest = payload.get("code_digest")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or not isinstance(code_digest, str):
            raise TokenInvalidError(_INVALID_TOKEN_MESSAGE)

        if not hmac.compare_digest(code_digest, self._code_digest(user_id, activation_code)):
            raise CodeMismatchError()

        if not self._users.activate(user_id):
            user = self._users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            raise AlreadyActiveError()

        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        logger.info("Activated user %s", user.id)
        return user

    # ------------------------------------------------------------------
    async def _issue_ticket(self, user: User) -> ActivationTicket:
        code = str(1000 + secrets.randbelow(9000))
        token = sign_token(
            {"user_id": user.id, "code_digest": self._code_digest(user.id, code)},
            self._secret,
            self._ttl,
            algorithm=self._algorithm,
            now=self._clock(),
        )
        sent = await asyncio.to_thread(self._email.send_activation_email, user.email, user.name, code)
        if not sent:
            logger.warning("Activation email for user %s was not delivered", user.id)
        return ActivationTicket(user=user, token=token, code=code, email=user.email)

    def _unredeemable_ticket(self, email: str) -> ActivationTicket:
        token = sign_token(
            {"user_id": 0, "code_digest": secrets.token_hex(32)},
            self._secret,
            self._ttl,
            algorithm=self._algorithm,
            now=self._clock(),
        )
        return ActivationTicket(user=None, token=token, code=None, email=email)

    def _code_digest(self, user_id: int, code: str) -> str:
        message = f"{user_id}:{code}".encode("utf-8")
        return hmac.new(self._secret.encode("utf-8"), message, hashlib.sha256).hexdigest()
