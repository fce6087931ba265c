# backend/app/api/deps.py
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import RecoveryPolicy, settings
from backend.app.db.base import get_db
from backend.app.models.otp_session import OtpSession
from backend.app.schemas.auth import ClientTokenPayload
from backend.app.security.jwt import JWTError, decode_access_token
from backend.app.services.emergency import EmergencyRecoveryService
from backend.app.services.keyless_backup import KeylessBackupService
from backend.app.services.otp import OtpService
from backend.app.services.sessions import SessionIssuer
from backend.app.services.sms import SmsSender, build_sms_sender

reusable_bearer = HTTPBearer(auto_error=False)


def get_policy() -> RecoveryPolicy:
    return settings.recovery_policy()


@lru_cache()
def get_sms_sender() -> SmsSender:
    return build_sms_sender(settings)


def get_session_issuer(
        db: AsyncSession = Depends(get_db),
        policy: RecoveryPolicy = Depends(get_policy),
) -> SessionIssuer:
    return SessionIssuer(db, policy)


def get_otp_service(
        db: AsyncSession = Depends(get_db),
        sms_sender: SmsSender = Depends(get_sms_sender),
        policy: RecoveryPolicy = Depends(get_policy),
        session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> OtpService:
    return OtpService(db, sms_sender, policy, session_issuer)


def get_emergency_service(
        db: AsyncSession = Depends(get_db),
        policy: RecoveryPolicy = Depends(get_policy),
        session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> EmergencyRecoveryService:
    return EmergencyRecoveryService(db, policy, session_issuer)


def get_backup_service(
        db: AsyncSession = Depends(get_db),
        policy: RecoveryPolicy = Depends(get_policy),
        session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> KeylessBackupService:
    return KeylessBackupService(db, policy, session_issuer)


async def get_current_client(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(reusable_bearer),
) -> ClientTokenPayload:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
        client = ClientTokenPayload(**payload)
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )

    return client


async def require_session(
        x_session_id: Optional[str] = Header(None, alias="X-Session-Id"),
        session_issuer: SessionIssuer = Depends(get_session_issuer),
) -> OtpSession:
    return await session_issuer.get_valid_session(x_session_id)
