"""Challenge routes: quiz challenges shared by invite code."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from eduhub.core.deps import get_current_user
from eduhub.db.session import get_db
from eduhub.models.challenge import Challenge
from eduhub.models.user import User
from eduhub.schemas.challenge import (
    ChallengeCreateSchema,
    ChallengeListResponseSchema,
    ChallengeOutSchema,
    ChallengeResponseSchema,
    LeaderboardEntrySchema,
    LeaderboardResponseSchema,
    ParticipantOutSchema,
    ParticipantResponseSchema,
    QuestionOutSchema,
    SubmitAnswersSchema,
    SubmitResultSchema,
)
from eduhub.services import challenges as challenge_service
from eduhub.services.scoring import accuracy_percentage

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


def _challenge_out(challenge: Challenge) -> ChallengeOutSchema:
    return ChallengeOutSchema(
        id=challenge.id,
        creator_id=challenge.creator_id,
        title=challenge.title,
        subject=challenge.subject,
        topic=challenge.topic,
        question_count=challenge.question_count,
        time_limit=challenge.time_limit,
        invite_code=challenge.invite_code,
        status=challenge.status,
        max_participants=challenge.max_participants,
        participant_count=len(challenge.participants),
        questions=[QuestionOutSchema(prompt=q["prompt"], options=q["options"]) for q in challenge.questions],
        created_at=challenge.created_at,
        started_at=challenge.started_at,
        completed_at=challenge.completed_at,
    )


@router.post("", response_model=ChallengeResponseSchema, status_code=status.HTTP_201_CREATED)
def create_challenge(
    body: ChallengeCreateSchema,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    challenge = challenge_service.create_challenge(db, current_user, body)
    return ChallengeResponseSchema(challenge=_challenge_out(challenge))


@router.get("/mine", response_model=ChallengeListResponseSchema)
def my_challenges(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Challenges created or joined by the caller."""
    items = challenge_service.list_user_challenges(db, current_user)
    return ChallengeListResponseSchema(challenges=[_challenge_out(c) for c in items])


@router.get("/{invite_code}", response_model=ChallengeResponseSchema)
def get_challenge(
    invite_code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    challenge = challenge_service.get_challenge_by_code(db, invite_code)
    return ChallengeResponseSchema(challenge=_challenge_out(challenge))


@router.post("/{invite_code}/join", response_model=ParticipantResponseSchema)
def join_challenge(
    invite_code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    challenge = challenge_service.get_challenge_by_code(db, invite_code)
    participant = challenge_service.join_challenge(db, challenge, current_user)
    return ParticipantResponseSchema(participant=ParticipantOutSchema.model_validate(participant))


@router.post("/{invite_code}/start", response_model=ChallengeResponseSchema)
def start_challenge(
    invite_code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    challenge = challenge_service.get_challenge_by_code(db, invite_code)
    challenge = challenge_service.start_challenge(db, challenge, current_user)
    return ChallengeResponseSchema(challenge=_challenge_out(challenge))


@router.post("/{invite_code}/submit", response_model=SubmitResultSchema)
def submit_answers(
    invite_code: str,
    body: SubmitAnswersSchema,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    challenge = challenge_service.get_challenge_by_code(db, invite_code)
    participant, correct = challenge_service.submit_answers(db, challenge, current_user, body)
    return SubmitResultSchema(
        score=participant.score,
        question_count=challenge.question_count,
        accuracy=accuracy_percentage(participant.score, challenge.question_count),
        correct=correct,
        challenge_status=challenge.status,
    )


@router.get("/{invite_code}/leaderboard", response_model=LeaderboardResponseSchema)
def get_leaderboard(
    invite_code: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Finished participants ranked by score, then speed."""
    challenge = challenge_service.get_challenge_by_code(db, invite_code)
    entries = [
        LeaderboardEntrySchema(
            rank=rank,
            user_id=p.user_id,
            first_name=p.user.first_name,
            last_name=p.user.last_name,
            score=p.score,
            time_elapsed=p.time_elapsed,
        )
        for rank, p in challenge_service.leaderboard(challenge)
    ]
    return LeaderboardResponseSchema(challenge_id=challenge.id, status=challenge.status, entries=entries)
