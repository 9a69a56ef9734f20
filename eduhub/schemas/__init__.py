from eduhub.schemas.auth import (
    AuthResponseSchema,
    GuestSessionSchema,
    GuestUpgradeSchema,
    LoginSchema,
    ProfileUpdateSchema,
    RegisterSchema,
    UserOutSchema,
)
from eduhub.schemas.challenge import ChallengeCreateSchema, ChallengeOutSchema, SubmitAnswersSchema

__all__ = [
    "AuthResponseSchema",
    "GuestSessionSchema",
    "GuestUpgradeSchema",
    "LoginSchema",
    "ProfileUpdateSchema",
    "RegisterSchema",
    "UserOutSchema",
    "ChallengeCreateSchema",
    "ChallengeOutSchema",
    "SubmitAnswersSchema",
]
