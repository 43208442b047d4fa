from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
from models.common import UserRole


class Profile(BaseModel):
    user_id:     str
    email:       Optional[str] = None
    full_name:   Optional[str] = None
    phone:       Optional[str] = None    # E.164 : "+62XXXXXXXXXX"
    role:        UserRole = UserRole.USER
    is_verified: bool = False            # flipped by an approved mitra verification
    is_blocked:  bool = False
    created_at:  datetime
    updated_at:  datetime


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.startswith("+"):
        raise ValueError("Phone must be in E.164 format (e.g. +62XXXXXXXXXX)")
    return v


class ProfileCreate(BaseModel):
    full_name: Optional[str] = None
    phone:     Optional[str] = None

    @field_validator("phone")
    @classmethod
    def phone_must_be_e164(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""
    full_name: Optional[str] = None
    phone:     Optional[str] = None

    @field_validator("phone")
    @classmethod
    def phone_must_be_e164(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class AdminProfileUpdate(ProfileUpdate):
    is_verified: Optional[bool] = None
    is_blocked:  Optional[bool] = None
    role:        Optional[UserRole] = None


class SignupRequest(BaseModel):
    email:     str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password:  str = Field(..., min_length=8, max_length=72)
    full_name: str = Field(..., min_length=1)
    phone:     Optional[str] = None
    role:      Literal["user", "mitra"] = "user"

    @field_validator("phone")
    @classmethod
    def phone_must_be_e164(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    email:    str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type:   str = "bearer"
    profile:      Profile
