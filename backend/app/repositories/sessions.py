# backend/app/repositories/sessions.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.otp_session import OtpSession


class SessionRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_id(self, session_id: str) -> Optional[OtpSession]:
        return await self.db.get(OtpSession, session_id)

    async def insert(self, record: OtpSession) -> OtpSession:
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record
