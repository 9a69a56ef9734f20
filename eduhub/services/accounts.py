"""Credentialed accounts: registration, login, profile edits and guest upgrade."""
from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eduhub.core.errors import Conflict, Unauthorized
from eduhub.core.security import (
    TokenKind,
    TokenPayload,
    create_access_token,
    hash_password,
    verify_password,
)
from eduhub.core.timeutils import utcnow
from eduhub.models.user import User
from eduhub.schemas.auth import GuestUpgradeSchema, ProfileUpdateSchema, RegisterSchema

logger = logging.getLogger(__name__)

# Name fields are NOT NULL; an explicit null in a profile update means "leave as is".
_REQUIRED_PROFILE_FIELDS = {"first_name", "last_name"}


def find_by_contact(
    db: Session,
    email: str | None = None,
    mobile: str | None = None,
    exclude_id: int | None = None,
) -> User | None:
    conditions = []
    if email:
        conditions.append(User.email == email)
    if mobile:
        conditions.append(User.mobile == mobile)
    if not conditions:
        return None

    stmt = select(User).where(or_(*conditions))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.execute(stmt.limit(1)).scalar_one_or_none()


def issue_token(user: User) -> str:
    """Standard (7 day) token for a credentialed account."""
    return create_access_token(
        TokenPayload(user_id=user.id, is_guest=user.is_guest, email=user.email, mobile=user.mobile),
        kind=TokenKind.STANDARD,
    )


def register_user(db: Session, data: RegisterSchema) -> User:
    if find_by_contact(db, data.email, data.mobile):
        raise Conflict("User already exists with this email or mobile number")

    now = utcnow()
    user = User(
        email=data.email,
        mobile=data.mobile,
        hashed_password=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        grade=data.grade,
        avatar=data.avatar,
        is_guest=False,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent registration
        db.rollback()
        raise Conflict("User already exists with this email or mobile number") from exc
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, email: str | None, mobile: str | None, password: str) -> User:
    """Return the user for valid credentials and stamp last_login."""
    user = find_by_contact(db, email, mobile)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("Failed login attempt")
        raise Unauthorized("Invalid credentials")

    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdateSchema) -> User:
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field in _REQUIRED_PROFILE_FIELDS:
            continue
        setattr(user, field, value)
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)
    logger.info("Updated profile for user %s", user.id)
    return user


def upgrade_guest(db: Session, user: User, data: GuestUpgradeSchema) -> User:
    """Turn a guest into a full account in place; the id is preserved."""
    if not user.is_guest:
        raise Unauthorized("Only guest users can upgrade their account")

    if find_by_contact(db, data.email, data.mobile, exclude_id=user.id):
        raise Conflict("Email or mobile number already exists")

    user.email = data.email
    user.mobile = data.mobile
    user.hashed_password = hash_password(data.password)
    user.is_guest = False
    user.guest_expires_at = None
    user.updated_at = utcnow()
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Email or mobile number already exists") from exc
    db.refresh(user)
    logger.info("Upgraded guest %s to a full account", user.id)
    return user
