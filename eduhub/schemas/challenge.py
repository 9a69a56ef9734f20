"""Pydantic schemas for quiz challenges."""
from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from eduhub.core.timeutils import as_utc
from eduhub.schemas.auth import CamelModel


class QuestionSchema(CamelModel):
    prompt: str = Field(min_length=1)
    options: list[str] = Field(min_length=2, max_length=6)
    answer_index: int = Field(ge=0)

    @model_validator(mode="after")
    def answer_in_options(self):
        if self.answer_index >= len(self.options):
            raise ValueError("answerIndex must point at one of the options")
        return self


class QuestionOutSchema(CamelModel):
    """Question as shown to players: no answer."""

    prompt: str
    options: list[str]


class ChallengeCreateSchema(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    subject: str = Field(min_length=1, max_length=100)
    topic: str = Field(min_length=1, max_length=255)
    time_limit: int = Field(ge=10, le=2 * 60 * 60)  # seconds
    max_participants: int = Field(default=10, ge=2, le=50)
    questions: list[QuestionSchema] = Field(min_length=1, max_length=100)


class ChallengeOutSchema(CamelModel):
    id: int
    creator_id: int
    title: str
    subject: str
    topic: str
    question_count: int
    time_limit: int
    invite_code: str
    status: str
    max_participants: int
    participant_count: int
    questions: list[QuestionOutSchema]
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @field_validator("created_at", "started_at", "completed_at")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ChallengeResponseSchema(CamelModel):
    success: bool = True
    challenge: ChallengeOutSchema


class ChallengeListResponseSchema(CamelModel):
    success: bool = True
    challenges: list[ChallengeOutSchema]


class ParticipantOutSchema(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    user_id: int
    status: str
    score: int
    time_elapsed: int | None = None
    joined_at: datetime
    completed_at: datetime | None = None

    @field_validator("joined_at", "completed_at")
    @classmethod
    def normalize_timestamps(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class ParticipantResponseSchema(CamelModel):
    success: bool = True
    participant: ParticipantOutSchema


class SubmitAnswersSchema(CamelModel):
    # chosen option index per question, null when skipped
    answers: list[int | None]
    time_elapsed: int = Field(ge=0)


class SubmitResultSchema(CamelModel):
    success: bool = True
    score: int
    question_count: int
    accuracy: float
    correct: list[bool]
    challenge_status: str


class LeaderboardEntrySchema(CamelModel):
    rank: int
    user_id: int
    first_name: str
    last_name: str
    score: int
    time_elapsed: int | None = None


class LeaderboardResponseSchema(CamelModel):
    success: bool = True
    challenge_id: int
    status: str
    entries: list[LeaderboardEntrySchema]
