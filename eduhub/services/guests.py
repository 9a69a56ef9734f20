"""Guest identities: creation, logout and the periodic expiry sweep."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eduhub.core.config import get_settings
from eduhub.core.errors import InternalError
from eduhub.core.security import TokenKind, TokenPayload, create_access_token
from eduhub.core.timeutils import utcnow
from eduhub.models.guest_session import GuestSession
from eduhub.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class CleanupResult:
    sessions_deleted: int = 0
    guests_demoted: int = 0


def create_guest_session(
    db: Session,
    first_name: str,
    last_name: str,
    grade: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[User, str]:
    """Create a guest user and its session record in one transaction.

    Returns the user and a guest-kind token bound to its id. Nothing is
    persisted if any step fails.
    """
    settings = get_settings()
    now = utcnow()
    expires_at = now + timedelta(hours=settings.guest_session_hours)

    try:
        user = User(
            first_name=first_name,
            last_name=last_name,
            grade=grade,
            is_guest=True,
            guest_expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.flush()  # assigns user.id

        token = create_access_token(
            TokenPayload(user_id=user.id, is_guest=True),
            kind=TokenKind.GUEST,
            now=now,
        )
        db.add(
            GuestSession(
                session_token=token,
                created_at=now,
                expires_at=expires_at,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        db.commit()
    except InternalError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Guest session creation failed")
        raise InternalError("Guest session creation failed") from exc

    db.refresh(user)
    logger.info("Created guest user %s (expires %s)", user.id, expires_at.isoformat())
    return user, token


def end_guest_session(db: Session, token: str) -> int:
    """Drop the session record for a guest token. Best effort."""
    try:
        result = db.execute(
            delete(GuestSession)
            .where(GuestSession.session_token == token)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to remove guest session on logout")
        return 0
    return result.rowcount or 0


def cleanup_expired_guest_sessions(db: Session, now: datetime | None = None) -> CleanupResult:
    """Delete expired session records and demote expired guest users.

    Safe to re-run: a second sweep finds nothing to do. A failing step is
    logged and does not stop the next one.
    """
    now = now or utcnow()
    result = CleanupResult()

    try:
        deleted = db.execute(
            delete(GuestSession)
            .where(GuestSession.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        result.sessions_deleted = deleted.rowcount or 0
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Sweep: deleting expired guest sessions failed")

    # Demoted guests keep their row but have no credential, so no login path.
    try:
        demoted = db.execute(
            update(User)
            .where(User.is_guest.is_(True), User.guest_expires_at < now)
            .values(is_guest=False, guest_expires_at=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        result.guests_demoted = demoted.rowcount or 0
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Sweep: demoting expired guest users failed")

    logger.info(
        "Sweep finished: %d guest sessions deleted, %d guests demoted",
        result.sessions_deleted,
        result.guests_demoted,
    )
    return result
