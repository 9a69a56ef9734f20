"""User model: credentialed accounts and time-boxed guest identities.

A row is either a guest (is_guest=True, guest_expires_at set, no credential)
or a durable account (email and/or mobile plus password hash).
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eduhub.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=True, index=True)
    mobile = Column(String(20), unique=True, nullable=True, index=True)
    hashed_password = Column(String(255), nullable=True)  # null for guests

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    grade = Column(String(10), nullable=True)
    avatar = Column(Text, nullable=True)

    is_guest = Column(Boolean, nullable=False, default=False, index=True)
    guest_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    created_challenges = relationship("Challenge", back_populates="creator")
    participations = relationship("ChallengeParticipant", back_populates="user")
