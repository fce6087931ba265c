# backend/app/repositories/keyless_backups.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.keyless_backup import BackupStatus, KeylessBackup


class KeylessBackupRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_wallet(self, wallet_address: str) -> Optional[KeylessBackup]:
        result = await self.db.execute(
            select(KeylessBackup).where(KeylessBackup.wallet_address == wallet_address)
        )
        return result.scalars().first()

    async def find_by_wallet_and_phone(self, wallet_address: str, phone: str) -> Optional[KeylessBackup]:
        result = await self.db.execute(
            select(KeylessBackup).where(
                KeylessBackup.wallet_address == wallet_address,
                KeylessBackup.phone == phone,
            )
        )
        return result.scalars().first()

    async def find_by_phone(self, phone: str) -> Optional[KeylessBackup]:
        result = await self.db.execute(
            select(KeylessBackup)
            .where(KeylessBackup.phone == phone)
            .order_by(KeylessBackup.updated_at.desc(), KeylessBackup.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def upsert_by_wallet(
        self,
        wallet_address: str,
        on_create: Dict[str, Any],
        on_update: Dict[str, Any],
    ) -> KeylessBackup:
        """
        Apply on_update to the wallet's row, or create it from on_create.

        Fields not named in on_update are left untouched. updated_at is
        bumped in both branches.
        """
        backup = await self.find_by_wallet(wallet_address)
        now = datetime.now(timezone.utc)
        if backup:
            for key, value in on_update.items():
                setattr(backup, key, value)
            backup.updated_at = now
        else:
            backup = KeylessBackup(wallet_address=wallet_address, **on_create)
            backup.created_at = now
            backup.updated_at = now
            self.db.add(backup)

        await self.db.commit()
        await self.db.refresh(backup)
        return backup

    async def update_status(self, wallet_address: str, status: BackupStatus) -> None:
        await self.db.execute(
            update(KeylessBackup)
            .where(KeylessBackup.wallet_address == wallet_address)
            .values(status=status, updated_at=datetime.now(timezone.utc))
        )
        await self.db.commit()

    async def delete(self, backup: KeylessBackup) -> None:
        await self.db.delete(backup)
        await self.db.commit()
