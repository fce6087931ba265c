# backend/app/schemas/keyless_backup.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from backend.app.models.keyless_backup import BackupStatus
from backend.app.schemas.otp import PHONE_PATTERN


class KeylessBackupCreate(BaseModel):
    wallet_address: str = Field(..., min_length=1, max_length=100)
    # Encrypted client-side; stored as given
    encrypted_mnemonic: Optional[str] = None
    encryption_address: Optional[str] = Field(None, max_length=100)


class LinkWalletRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    wallet_address: str = Field(..., min_length=1, max_length=100)
    keyshare: str = Field(..., min_length=1)


class CheckPhoneRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    wallet_address: Optional[str] = None


class CheckPhoneResponse(BaseModel):
    exists: bool
    wallet_address: Optional[str] = None
    phone: Optional[str] = None


class KeylessBackupResponse(BaseModel):
    id: int
    wallet_address: str
    phone: Optional[str]
    encrypted_mnemonic: Optional[str]
    encryption_address: Optional[str]
    status: BackupStatus
    flow: Optional[str]
    origin: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
