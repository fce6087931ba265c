# backend/app/repositories/keyshare_ledger.py
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.keyshare_ledger import KeyshareLedger

logger = logging.getLogger(__name__)


class KeyshareLedgerRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, phone: str) -> Optional[KeyshareLedger]:
        result = await self.db.execute(
            select(KeyshareLedger).where(KeyshareLedger.phone == phone)
        )
        return result.scalars().first()

    async def insert_if_absent(self, phone: str, keyshare: str) -> str:
        """
        Record keyshare for phone unless a row already exists.

        Returns:
            The keyshare of record: ours if the insert won, otherwise the
            value written by whichever request got there first
        """
        self.db.add(KeyshareLedger(phone=phone, keyshare=keyshare))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            existing = await self.get(phone)
            if existing is None:
                # Constraint fired but no row is visible; not a lost race
                raise
            logger.info("Keyshare already claimed concurrently, reusing the recorded one")
            return existing.keyshare
        return keyshare
