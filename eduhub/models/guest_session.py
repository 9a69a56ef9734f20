"""GuestSession: audit/cleanup record for one guest token issuance.

Not referenced by foreign key from users; the sweep removes rows once
expires_at has passed.
"""
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from eduhub.db.session import Base


class GuestSession(Base):
    __tablename__ = "guest_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_token = Column(Text, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String(45), nullable=True)  # fits IPv6
    user_agent = Column(Text, nullable=True)
