"""Identity domain model for hostel residents and staff."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class HostelRequestStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(slots=True)
class Avatar:
    public_id: Optional[str] = None
    url: Optional[str] = None


@dataclass(slots=True)
class User:
    """
    Identity record for anyone with hostel-system access.

    Attributes:
        id: Unique identifier
        name: Display name
        email: Lower-cased, unique email address
        phone: Contact number; social sign-in identities have none
        password_hash: bcrypt digest, None for social sign-in identities
        avatar: Optional avatar reference
        role: Access role
        is_active: Whether the email address has been confirmed
        hostel_request_status: State of the resident's hostel request
        hostel_id: Assigned hostel reference, if any
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    password_hash: Optional[str] = field(default=None, repr=False)
    avatar: Optional[Avatar] = None
    role: Role = Role.USER
    is_active: bool = False
    hostel_request_status: HostelRequestStatus = HostelRequestStatus.NONE
    hostel_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)


def public_user_dict(user: User) -> Dict[str, Any]:
    """Serialize a user for clients and the session cache. The digest is never included."""
    avatar = None
    if user.avatar is not None:
        avatar = {"public_id": user.avatar.public_id, "url": user.avatar.url}
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "avatar": avatar,
        "role": user.role.value,
        "is_active": user.is_active,
        "hostel_request_status": user.hostel_request_status.value,
        "hostel_id": user.hostel_id,
        "created_at": user.created_at.replace(microsecond=0).isoformat(),
        "updated_at": user.updated_at.replace(microsecond=0).isoformat(),
    }


def serialize_session_user(user: User) -> str:
    return json.dumps(public_user_dict(user), ensure_ascii=False)


def parse_session_user(raw: str) -> User:
    """Rebuild a User from a cached snapshot.

    Raises ValueError when the snapshot is not a JSON object with a usable id,
    email and known enum values.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("session snapshot is not an object")
    user_id = data.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValueError("session snapshot has no valid id")
    email = data.get("email")
    if not isinstance(email, str) or not email:
        raise ValueError("session snapshot has no email")

    avatar_data = data.get("avatar")
    avatar = None
    if isinstance(avatar_data, dict):
        avatar = Avatar(public_id=avatar_data.get("public_id"), url=avatar_data.get("url"))

    user = User(
        id=user_id,
        name=str(data.get("name") or ""),
        email=email,
        phone=data.get("phone"),
        avatar=avatar,
        role=Role(data.get("role", Role.USER.value)),
        is_active=bool(data.get("is_active", False)),
        hostel_request_status=HostelRequestStatus(
            data.get("hostel_request_status", HostelRequestStatus.NONE.value)
        ),
        hostel_id=data.get("hostel_id"),
    )
    if data.get("created_at"):
        user.created_at = datetime.fromisoformat(data["created_at"])
    if data.get("updated_at"):
        user.updated_at = datetime.fromisoformat(data["updated_at"])
    return user
