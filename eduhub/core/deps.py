"""Request dependencies: bearer-token session gate."""
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduhub.core.errors import InternalError, Unauthorized
from eduhub.core.security import TokenError, decode_access_token
from eduhub.core.timeutils import as_utc, utcnow
from eduhub.db.session import get_db
from eduhub.models.user import User
from eduhub.schemas.auth import UserOutSchema

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")
    return credentials.credentials


def get_current_user(
    request: Request,
    token: Annotated[str, Depends(get_bearer_token)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Resolve the bearer token to a live user or reject the request.

    The guest row's own expiry is checked independently of the token's, so
    the row stays the authority even if the two windows drift apart.
    """
    try:
        payload = decode_access_token(token)
    except TokenError as exc:
        logger.info("Rejected token (%s)", type(exc).__name__)
        raise Unauthorized("Invalid or expired token") from exc

    try:
        user = db.get(User, payload.user_id)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed during authentication")
        raise InternalError("Authentication failed") from exc

    if user is None:
        raise Unauthorized("User not found")

    expires_at = as_utc(user.guest_expires_at)
    if user.is_guest and expires_at is not None and utcnow() > expires_at:
        logger.info("Guest session expired for user %s", user.id)
        raise Unauthorized("Guest session expired")

    request.state.user = UserOutSchema.model_validate(user)
    return user
