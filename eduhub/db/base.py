"""SQLAlchemy declarative base and model imports for Alembic."""
from eduhub.db.session import Base

# Import all models so Alembic can see them
from eduhub.models.challenge import Challenge, ChallengeParticipant  # noqa: F401
from eduhub.models.guest_session import GuestSession  # noqa: F401
from eduhub.models.user import User  # noqa: F401

__all__ = ["Base", "User", "GuestSession", "Challenge", "ChallengeParticipant"]
