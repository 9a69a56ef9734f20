"""Pydantic schemas for registration, login, guest sessions and profiles.

JSON keys are camelCase to match the web client; snake_case is accepted on input.
"""
from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from eduhub.core.timeutils import as_utc

# Simple, practical email check
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MOBILE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")

NAME_MAX_LENGTH = 100
GRADE_MAX_LENGTH = 10
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72  # bcrypt hard limit (UTF-8)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _check_email(value: str | None) -> str | None:
    if value is None:
        return None
    email = normalize_email(value)
    if not EMAIL_RE.match(email):
        raise ValueError("Invalid email format")
    return email


def _check_mobile(value: str | None) -> str | None:
    if value is None:
        return None
    mobile = value.strip()
    if not MOBILE_RE.match(mobile):
        raise ValueError("Invalid mobile number format")
    return mobile


def _check_new_password(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


def _check_name(value: str | None, label: str) -> str | None:
    if value is None:
        return None
    name = value.strip()
    if not name:
        raise ValueError(f"{label} is required")
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} too long")
    return name


def _check_grade(value: str | None) -> str | None:
    if value is None:
        return None
    grade = value.strip()
    if len(grade) > GRADE_MAX_LENGTH:
        raise ValueError("Grade too long")
    return grade or None


class _NamesMixin(CamelModel):
    @field_validator("first_name", check_fields=False)
    @classmethod
    def validate_first_name(cls, v):
        return _check_name(v, "First name")

    @field_validator("last_name", check_fields=False)
    @classmethod
    def validate_last_name(cls, v):
        return _check_name(v, "Last name")

    @field_validator("grade", check_fields=False)
    @classmethod
    def validate_grade(cls, v):
        return _check_grade(v)


class _ContactMixin(CamelModel):
    @field_validator("email", check_fields=False)
    @classmethod
    def validate_email(cls, v):
        return _check_email(v)

    @field_validator("mobile", check_fields=False)
    @classmethod
    def validate_mobile(cls, v):
        return _check_mobile(v)


class RegisterSchema(_NamesMixin, _ContactMixin):
    email: str | None = None
    mobile: str | None = None
    password: str | None = None
    first_name: str
    last_name: str
    grade: str | None = None
    avatar: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_new_password(v)

    @model_validator(mode="after")
    def credential_required(self):
        if not (self.email or self.mobile) or not self.password:
            raise ValueError("Email or mobile and password are required for registration")
        return self


class LoginSchema(_ContactMixin):
    email: str | None = None
    mobile: str | None = None
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v

    @model_validator(mode="after")
    def identifier_required(self):
        if not (self.email or self.mobile):
            raise ValueError("Email or mobile is required")
        return self


class GuestSessionSchema(_NamesMixin):
    first_name: str
    last_name: str
    grade: str | None = None


class ProfileUpdateSchema(_NamesMixin):
    first_name: str | None = None
    last_name: str | None = None
    grade: str | None = None
    avatar: str | None = None


class GuestUpgradeSchema(_ContactMixin):
    email: str
    password: str
    mobile: str | None = None

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        return _check_new_password(v)


class _UserView(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    @field_validator("created_at", "last_login", "guest_expires_at", check_fields=False)
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class UserOutSchema(_UserView):
    id: int
    email: str | None = None
    mobile: str | None = None
    first_name: str
    last_name: str
    grade: str | None = None
    avatar: str | None = None
    is_guest: bool
    guest_expires_at: datetime | None = None
    created_at: datetime
    last_login: datetime | None = None


class GuestUserOutSchema(_UserView):
    """Minimal public view returned when a guest identity is created."""

    id: int
    first_name: str
    last_name: str
    grade: str | None = None
    is_guest: bool = True
    created_at: datetime


class AuthResponseSchema(CamelModel):
    success: bool = True
    token: str
    user: UserOutSchema


class GuestAuthResponseSchema(CamelModel):
    success: bool = True
    token: str
    user: GuestUserOutSchema


class UserResponseSchema(CamelModel):
    success: bool = True
    user: UserOutSchema


class CleanupResultSchema(CamelModel):
    success: bool = True
    sessions_deleted: int
    guests_demoted: int
