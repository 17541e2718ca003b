from __future__ import annotations

from typing import Optional, Protocol

from ..models import Avatar, Role, User


class UserRepository(Protocol):
    """Credential store for identity records, queried by email or id."""

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def create(
        self,
        *,
        name: str,
        email: str,
        phone: Optional[str],
        password_hash: Optional[str],
        avatar: Optional[Avatar] = None,
        role: Role = Role.USER,
        is_active: bool = False,
    ) -> User:
        """Insert a new identity. Raises ConstraintViolation when the email is taken."""
        ...

    def activate(self, user_id: int) -> bool:
        """Flip ``is_active`` from false to true; returns False if nothing changed."""
        ...

    def claim_pending(self, user_id: int) -> bool:
        """Activate an inactive identity and clear its pending password digest."""
        ...
