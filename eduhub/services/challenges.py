"""Challenge lifecycle: create, join, start, submit answers, leaderboard."""
from __future__ import annotations

import logging
import secrets
import string

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from eduhub.core.errors import Conflict, Forbidden, InternalError, NotFound, ValidationError
from eduhub.core.timeutils import utcnow
from eduhub.models.challenge import (
    PARTICIPANT_COMPLETED,
    PARTICIPANT_JOINED,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_WAITING,
    Challenge,
    ChallengeParticipant,
)
from eduhub.models.user import User
from eduhub.schemas.challenge import ChallengeCreateSchema, SubmitAnswersSchema
from eduhub.services.scoring import compute_score, grade_answers, rank_participants

logger = logging.getLogger(__name__)

INVITE_CODE_LENGTH = 8
INVITE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 5


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(length))


def _unused_invite_code(db: Session) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_invite_code()
        taken = db.execute(select(Challenge.id).where(Challenge.invite_code == code)).first()
        if taken is None:
            return code
    logger.error("Could not find a free invite code after %d attempts", MAX_CODE_ATTEMPTS)
    raise InternalError("Could not allocate an invite code")


def create_challenge(db: Session, creator: User, data: ChallengeCreateSchema) -> Challenge:
    """Create a challenge; the creator joins it straight away."""
    challenge = Challenge(
        creator_id=creator.id,
        title=data.title,
        subject=data.subject,
        topic=data.topic,
        question_count=len(data.questions),
        time_limit=data.time_limit,
        invite_code=_unused_invite_code(db),
        status=STATUS_WAITING,
        questions=[q.model_dump() for q in data.questions],
        max_participants=data.max_participants,
        created_at=utcnow(),
    )
    db.add(challenge)
    db.flush()
    db.add(
        ChallengeParticipant(
            challenge_id=challenge.id,
            user_id=creator.id,
            status=PARTICIPANT_JOINED,
            joined_at=utcnow(),
        )
    )
    db.commit()
    db.refresh(challenge)
    logger.info("User %s created challenge %s (%s)", creator.id, challenge.id, challenge.invite_code)
    return challenge


def get_challenge_by_code(db: Session, invite_code: str) -> Challenge:
    challenge = db.execute(
        select(Challenge).where(Challenge.invite_code == invite_code.strip().upper())
    ).scalar_one_or_none()
    if challenge is None:
        raise NotFound("Challenge not found")
    return challenge


def list_user_challenges(db: Session, user: User) -> list[Challenge]:
    """Challenges the user created or joined, newest first."""
    joined = select(ChallengeParticipant.challenge_id).where(ChallengeParticipant.user_id == user.id)
    stmt = (
        select(Challenge)
        .where(or_(Challenge.creator_id == user.id, Challenge.id.in_(joined)))
        .order_by(Challenge.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def _find_participant(challenge: Challenge, user: User) -> ChallengeParticipant | None:
    for participant in challenge.participants:
        if participant.user_id == user.id:
            return participant
    return None


def join_challenge(db: Session, challenge: Challenge, user: User) -> ChallengeParticipant:
    if challenge.status == STATUS_COMPLETED:
        raise ValidationError("Challenge has already finished")
    if _find_participant(challenge, user) is not None:
        raise Conflict("Already joined this challenge")
    if len(challenge.participants) >= challenge.max_participants:
        raise Conflict("Challenge is full")

    participant = ChallengeParticipant(
        challenge_id=challenge.id,
        user_id=user.id,
        status=PARTICIPANT_JOINED,
        joined_at=utcnow(),
    )
    db.add(participant)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Already joined this challenge") from exc
    db.refresh(participant)
    logger.info("User %s joined challenge %s", user.id, challenge.id)
    return participant


def start_challenge(db: Session, challenge: Challenge, user: User) -> Challenge:
    if challenge.creator_id != user.id:
        raise Forbidden("Only the challenge creator can start it")
    if challenge.status != STATUS_WAITING:
        raise ValidationError("Challenge has already started")

    challenge.status = STATUS_ACTIVE
    challenge.started_at = utcnow()
    db.commit()
    db.refresh(challenge)
    logger.info("Challenge %s started", challenge.id)
    return challenge


def submit_answers(
    db: Session,
    challenge: Challenge,
    user: User,
    data: SubmitAnswersSchema,
) -> tuple[ChallengeParticipant, list[bool]]:
    """Score a participant's answers; the last submission completes the challenge."""
    participant = _find_participant(challenge, user)
    if participant is None:
        raise Forbidden("Join the challenge before submitting answers")
    if challenge.status != STATUS_ACTIVE:
        raise ValidationError("Challenge is not active")
    if participant.status == PARTICIPANT_COMPLETED:
        raise Conflict("Answers already submitted")
    if len(data.answers) != challenge.question_count:
        raise ValidationError(f"Expected {challenge.question_count} answers")

    correct = grade_answers(challenge.questions, data.answers)
    now = utcnow()
    participant.answers = list(data.answers)
    participant.score = compute_score(correct)
    participant.time_elapsed = data.time_elapsed
    participant.status = PARTICIPANT_COMPLETED
    participant.completed_at = now

    if all(p.status == PARTICIPANT_COMPLETED for p in challenge.participants):
        challenge.status = STATUS_COMPLETED
        challenge.completed_at = now
        logger.info("Challenge %s completed", challenge.id)

    db.commit()
    db.refresh(participant)
    return participant, correct


def leaderboard(challenge: Challenge) -> list[tuple[int, ChallengeParticipant]]:
    finished = [p for p in challenge.participants if p.status == PARTICIPANT_COMPLETED]
    return rank_participants(finished)
