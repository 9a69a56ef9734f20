"""Auth routes: register, login, guest sessions, profile, upgrade, logout, sweep."""
from __future__ import annotations

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, Response, status
from sqlalchemy.orm import Session

from eduhub.core.config import get_settings
from eduhub.core.deps import get_bearer_token, get_current_user
from eduhub.core.errors import NotFound, TooManyRequests, Unauthorized
from eduhub.db.session import get_db
from eduhub.models.user import User
from eduhub.schemas.auth import (
    AuthResponseSchema,
    CleanupResultSchema,
    GuestAuthResponseSchema,
    GuestSessionSchema,
    GuestUpgradeSchema,
    GuestUserOutSchema,
    LoginSchema,
    ProfileUpdateSchema,
    RegisterSchema,
    UserOutSchema,
    UserResponseSchema,
)
from eduhub.services import accounts, guests
from eduhub.services.rate_limit import RateLimitStore, client_ip, get_rate_limit_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])
settings = get_settings()


def register_rate_limit(
    request: Request,
    store: Annotated[RateLimitStore, Depends(get_rate_limit_store)],
) -> None:
    if not store.hit(
        "register",
        client_ip(request),
        settings.register_rate_limit_attempts,
        settings.register_rate_limit_window_seconds,
    ):
        raise TooManyRequests("Too many registration attempts. Please try again later.")


def login_rate_limit(
    request: Request,
    store: Annotated[RateLimitStore, Depends(get_rate_limit_store)],
) -> None:
    if not store.hit(
        "login",
        client_ip(request),
        settings.login_rate_limit_attempts,
        settings.login_rate_limit_window_seconds,
    ):
        raise TooManyRequests("Too many login attempts. Please try again later.")


def _auth_response(user: User) -> AuthResponseSchema:
    return AuthResponseSchema(token=accounts.issue_token(user), user=UserOutSchema.model_validate(user))


@router.post(
    "/register",
    response_model=AuthResponseSchema,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)],
)
def register(body: RegisterSchema, db: Annotated[Session, Depends(get_db)]):
    """Create a credentialed account and return a 7-day token."""
    user = accounts.register_user(db, body)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponseSchema, dependencies=[Depends(login_rate_limit)])
def login(body: LoginSchema, db: Annotated[Session, Depends(get_db)]):
    user = accounts.authenticate(db, body.email, body.mobile, body.password)
    return _auth_response(user)


@router.post("/guest", response_model=GuestAuthResponseSchema, status_code=status.HTTP_201_CREATED)
def create_guest(
    request: Request,
    body: GuestSessionSchema,
    db: Annotated[Session, Depends(get_db)],
    user_agent: Annotated[str | None, Header()] = None,
):
    """Start a 24-hour guest identity; no credentials required."""
    user, token = guests.create_guest_session(
        db,
        body.first_name,
        body.last_name,
        grade=body.grade,
        ip_address=client_ip(request),
        user_agent=user_agent,
    )
    return GuestAuthResponseSchema(token=token, user=GuestUserOutSchema.model_validate(user))


@router.get("/profile", response_model=UserResponseSchema)
def get_profile(current_user: Annotated[User, Depends(get_current_user)]):
    return UserResponseSchema(user=UserOutSchema.model_validate(current_user))


@router.put("/profile", response_model=UserResponseSchema)
def update_profile(
    body: ProfileUpdateSchema,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Partial profile update (names, grade, avatar)."""
    user = accounts.update_profile(db, current_user, body)
    return UserResponseSchema(user=UserOutSchema.model_validate(user))


@router.post("/guest/upgrade", response_model=AuthResponseSchema)
def upgrade_guest(
    body: GuestUpgradeSchema,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Attach credentials to the calling guest, keeping its id."""
    user = accounts.upgrade_guest(db, current_user, body)
    return _auth_response(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    current_user: Annotated[User, Depends(get_current_user)],
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
):
    """Tokens are stateless; for guests the session record is dropped."""
    if current_user.is_guest:
        guests.end_guest_session(db, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/cleanup", response_model=CleanupResultSchema)
def cleanup(
    db: Annotated[Session, Depends(get_db)],
    x_maintenance_token: Annotated[str | None, Header()] = None,
):
    """Run the guest expiry sweep on demand (for schedulers that speak HTTP)."""
    if not settings.maintenance_token:
        raise NotFound("Not found")
    if not x_maintenance_token or not hmac.compare_digest(x_maintenance_token, settings.maintenance_token):
        raise Unauthorized("Invalid maintenance token")

    result = guests.cleanup_expired_guest_sessions(db)
    return CleanupResultSchema(
        sessions_deleted=result.sessions_deleted,
        guests_demoted=result.guests_demoted,
    )
