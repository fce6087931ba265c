# backend/app/models/keyshare_ledger.py
"""
Keyshare of record, one row per phone.

Append-only. The unique phone column is what makes the first writer win
when two requests mint a keyshare for the same phone at once.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from backend.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyshareLedger(Base):
    __tablename__ = "keyshare_ledger"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), unique=True, nullable=False)
    keyshare = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
