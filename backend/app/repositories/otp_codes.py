# backend/app/repositories/otp_codes.py
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.otp_code import OtpCode


class OtpCodeRepository:
    """Store access for issued codes. Every write commits immediately."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_latest_with_keyshare(self, phone: str) -> Optional[OtpCode]:
        result = await self.db.execute(
            select(OtpCode)
            .where(OtpCode.phone == phone, OtpCode.keyshare.is_not(None))
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def find_valid_unexpired(self, phone: str, code: str, now: datetime) -> Optional[OtpCode]:
        result = await self.db.execute(
            select(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.code == code,
                OtpCode.is_valid.is_(True),
                OtpCode.expires_at >= now,
            )
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def find_latest_by_phone_and_keyshare(self, phone: str, keyshare: str) -> Optional[OtpCode]:
        # Validity and expiry are deliberately ignored: this is proof that the
        # keyshare was once issued to the phone
        result = await self.db.execute(
            select(OtpCode)
            .where(OtpCode.phone == phone, OtpCode.keyshare == keyshare)
            .order_by(OtpCode.created_at.desc(), OtpCode.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def insert(self, record: OtpCode) -> OtpCode:
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def invalidate_all_valid_non_emergency(self, phone: str) -> int:
        result = await self.db.execute(
            update(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.is_valid.is_(True),
                OtpCode.is_emergency.is_(False),
            )
            .values(is_valid=False)
        )
        await self.db.commit()
        return result.rowcount

    async def invalidate_valid_non_emergency_before(self, phone: str, otp_id: int) -> int:
        # Rows older than otp_id only, so the newest of two racing sends survives
        result = await self.db.execute(
            update(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.id < otp_id,
                OtpCode.is_valid.is_(True),
                OtpCode.is_emergency.is_(False),
            )
            .values(is_valid=False)
        )
        await self.db.commit()
        return result.rowcount

    async def invalidate_by_phone_and_code(self, phone: str, code: str) -> int:
        # Never withdraws an emergency grant
        result = await self.db.execute(
            update(OtpCode)
            .where(
                OtpCode.phone == phone,
                OtpCode.code == code,
                OtpCode.is_emergency.is_(False),
            )
            .values(is_valid=False)
        )
        await self.db.commit()
        return result.rowcount

    async def mark_used_and_set_keyshare(self, otp_id: int, keyshare: str) -> int:
        """
        Consume the code. Returns 0 when another request consumed it first.
        """
        result = await self.db.execute(
            update(OtpCode)
            .where(OtpCode.id == otp_id, OtpCode.is_valid.is_(True))
            .values(is_valid=False, keyshare=keyshare)
        )
        await self.db.commit()
        return result.rowcount
