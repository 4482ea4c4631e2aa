"""
Pinboard API: Account Schemas
===============================

Request bodies for registration, login and account settings, and the
token-bearing auth response.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from pinboard.schemas.common import UserPublic


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username cannot be blank")
        if " " in v:
            raise ValueError("Username cannot contain spaces")
        return v


class LoginRequest(BaseModel):
    """`email` accepts either the account email or the username."""
    email: str = Field(min_length=1, description="Email or username")
    password: str = Field(min_length=1)


class AuthUser(BaseModel):
    id: uuid.UUID
    username: str
    email: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    token: str
    user: AuthUser


class ProfileResponse(BaseModel):
    message: str
    user: UserPublic


class ChangeUsernameRequest(BaseModel):
    new_username: str = Field(min_length=3, max_length=50)

    @field_validator("new_username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v or " " in v:
            raise ValueError("Username cannot be blank or contain spaces")
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)


class UserUpdateRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged. "" clears the picture."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    profile_picture: Optional[str] = Field(default=None, max_length=500)


class AccountStatusResponse(BaseModel):
    is_deactivated: bool
    is_deleted: bool
