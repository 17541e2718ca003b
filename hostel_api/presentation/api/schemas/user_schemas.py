"""Pydantic schemas for the account endpoints."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from hostel_api.services.password_hasher import MAX_PASSWORD_BYTES


class AvatarPayload(BaseModel):
    public_id: Optional[str] = None
    url: Optional[str] = None


class UserRegisterRequest(BaseModel):
    """Request schema for user registration."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str = Field(pattern=r"^[0-9]{10,15}$")
    password: str = Field(min_length=6)
    avatar: Optional[AvatarPayload] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter your name")
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def _strip_phone(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class ActivationRequest(BaseModel):
    """Both fields are optional here so a missing one yields the domain error message."""

    activation_token: Optional[str] = None
    activation_code: Optional[str] = None


class ResendActivationRequest(BaseModel):
    email: EmailStr


class UserLoginRequest(BaseModel):
    """Request schema for user login."""

    email: Optional[str] = None
    password: Optional[str] = None


class SocialAuthRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    avatar: Optional[str] = None
