# backend/app/models/otp_session.py
"""
ORM model for sessions opened by a successful OTP verification or an
emergency grant.

Sessions are never renewed: expiration_time is fixed at creation.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from backend.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpSession(Base):
    __tablename__ = "otp_sessions"

    # uuid4 hex, generated by the session issuer
    id = Column(String(64), primary_key=True)

    subject_phone = Column(String(20), nullable=False, index=True)

    # The keyshare the phone proved possession of when the session opened
    bound_keyshare = Column(String(128), nullable=False)

    expiration_time = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
