from eduhub.services.guests import cleanup_expired_guest_sessions, create_guest_session
from eduhub.services.scoring import compute_score, rank_participants

__all__ = [
    "cleanup_expired_guest_sessions",
    "create_guest_session",
    "compute_score",
    "rank_participants",
]
