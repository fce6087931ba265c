# backend/app/models/otp_code.py
"""
ORM model for issued one-time codes.

A phone has at most one valid non-emergency code at a time. That is kept by
invalidating before inserting, not by a constraint. Rows are never deleted
by the services.
"""
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from backend.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, index=True)

    # E.164 destination, e.g. +573001234567
    phone = Column(String(20), nullable=False, index=True)

    # 6 ASCII digits ("777777" for emergency grants)
    code = Column(String(6), nullable=False)

    # 64 hex chars; the same value for every row of a phone once bound
    keyshare = Column(String(128), nullable=True)

    is_valid = Column(Boolean, default=True, nullable=False)

    # Emergency rows survive the invalidation done when a new code is sent
    is_emergency = Column(Boolean, default=False, nullable=False)

    expires_at = Column(DateTime(timezone=True), nullable=False)

    # Python-side default keeps microseconds; "most recent" ordering relies on it
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_otp_codes_lookup", "phone", "code", "is_valid"),
        Index("ix_otp_codes_phone_keyshare", "phone", "keyshare"),
    )

    def __repr__(self) -> str:
        return f"<OtpCode(id={self.id}, is_valid={self.is_valid}, is_emergency={self.is_emergency})>"
