# backend/app/models/keyless_backup.py
import enum
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Enum, Integer, String, Text

from backend.app.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BackupStatus(str, enum.Enum):
    NOT_STARTED = "NotStarted"
    COMPLETED = "Completed"
    EMERGENCY_RECOVERY = "Emergency_Recovery"


class KeylessBackup(Base):
    __tablename__ = "keyless_backups"

    id = Column(Integer, primary_key=True, index=True)

    # One backup per wallet; upserts key on this column
    wallet_address = Column(String(100), unique=True, index=True, nullable=False)

    # Not unique: linking by wallet is the only guard against a phone
    # being attached to two backups
    phone = Column(String(20), nullable=True, index=True)

    # --- Opaque blobs, encrypted client-side ---
    encrypted_mnemonic = Column(Text, nullable=True)
    encryption_address = Column(String(100), nullable=True)

    status = Column(
        Enum(BackupStatus, values_callable=lambda e: [m.value for m in e], native_enum=False),
        default=BackupStatus.NOT_STARTED,
        nullable=False,
    )

    # Where the backup came from; informational only
    flow = Column(String(50), nullable=True)
    origin = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
