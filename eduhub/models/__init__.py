from eduhub.models.user import User
from eduhub.models.guest_session import GuestSession
from eduhub.models.challenge import Challenge, ChallengeParticipant

__all__ = ["User", "GuestSession", "Challenge", "ChallengeParticipant"]
