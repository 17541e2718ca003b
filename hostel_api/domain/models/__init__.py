"""Domain models for the hostel API."""

from .user import (
    Avatar,
    HostelRequestStatus,
    Role,
    User,
    parse_session_user,
    public_user_dict,
    serialize_session_user,
)

__all__ = [
    "Avatar",
    "HostelRequestStatus",
    "Role",
    "User",
    "parse_session_user",
    "public_user_dict",
    "serialize_session_user",
]
