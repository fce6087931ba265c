# backend/app/services/sessions.py
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import RecoveryPolicy
from backend.app.core.exceptions import Unauthorized
from backend.app.models.otp_session import OtpSession
from backend.app.repositories.sessions import SessionRepository
from backend.app.schemas.auth import SessionTokenPayload
from backend.app.security.jwt import CLIENT_APP_VERSION, create_access_token

TokenSigner = Callable[[Dict[str, Any]], str]


@dataclass(frozen=True)
class IssuedSession:
    token: str
    session_id: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionIssuer:
    """Opens sessions after OTP verification or an emergency grant and checks them later."""

    def __init__(
        self,
        db: AsyncSession,
        policy: RecoveryPolicy,
        sign: Optional[TokenSigner] = None,
    ) -> None:
        self.sessions = SessionRepository(db)
        self.policy = policy
        self.sign = sign or create_access_token

    async def create_session(self, keyshare: str, phone: str) -> IssuedSession:
        session_id = uuid.uuid4().hex
        await self.sessions.insert(
            OtpSession(
                id=session_id,
                subject_phone=phone,
                bound_keyshare=keyshare,
                expiration_time=datetime.now(timezone.utc) + timedelta(hours=self.policy.session_ttl_hours),
            )
        )
        claims = SessionTokenPayload(
            sub=phone,
            clientId=phone,
            appVersion=CLIENT_APP_VERSION,
            sessionId=session_id,
            keyshare=keyshare,
        )
        token = self.sign(claims.model_dump())
        return IssuedSession(token=token, session_id=session_id)

    async def get_valid_session(self, session_id: Optional[str]) -> OtpSession:
        if not session_id:
            raise Unauthorized("No session ID provided")

        session = await self.sessions.find_by_id(session_id)
        if session is None:
            raise Unauthorized("Invalid session")

        if datetime.now(timezone.utc) > _as_utc(session.expiration_time):
            raise Unauthorized("Session expired")

        return session
