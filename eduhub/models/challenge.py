"""Quiz challenges shared by invite code, and the users taking part in them."""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eduhub.db.session import Base

STATUS_WAITING = "waiting"
STATUS_ACTIVE = "active"
STATUS_COMPLETED = "completed"

PARTICIPANT_JOINED = "joined"
PARTICIPANT_COMPLETED = "completed"


class Challenge(Base):
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    subject = Column(String(100), nullable=False)
    topic = Column(String(255), nullable=False)
    question_count = Column(Integer, nullable=False)
    time_limit = Column(Integer, nullable=False)  # seconds
    invite_code = Column(String(8), unique=True, nullable=False, index=True)
    status = Column(String(16), nullable=False, default=STATUS_WAITING)  # waiting | active | completed
    # questions: JSON array of {prompt, options, answer_index}
    questions = Column(JSON, nullable=False)
    max_participants = Column(Integer, nullable=False, default=10)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    creator = relationship("User", back_populates="created_challenges")
    participants = relationship(
        "ChallengeParticipant",
        back_populates="challenge",
        order_by="ChallengeParticipant.id",
    )


class ChallengeParticipant(Base):
    __tablename__ = "challenge_participants"
    __table_args__ = (UniqueConstraint("challenge_id", "user_id", name="uq_participant_challenge_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=PARTICIPANT_JOINED)  # joined | completed
    score = Column(Integer, nullable=False, default=0)
    time_elapsed = Column(Integer, nullable=True)  # seconds taken
    answers = Column(JSON, nullable=True)  # chosen option index per question
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    challenge = relationship("Challenge", back_populates="participants")
    user = relationship("User", back_populates="participations")
