# backend/app/services/keyless_backup.py
import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import RecoveryPolicy
from backend.app.core.exceptions import NotFound, Unauthorized
from backend.app.models.keyless_backup import BackupStatus, KeylessBackup
from backend.app.repositories.keyless_backups import KeylessBackupRepository
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.security.otp_codes import mask_phone
from backend.app.services.sessions import SessionIssuer

logger = logging.getLogger(__name__)


class KeylessBackupService:
    """Encrypted backup records, one per wallet address, and their phone link."""

    def __init__(
        self,
        db: AsyncSession,
        policy: RecoveryPolicy,
        session_issuer: Optional[SessionIssuer] = None,
    ) -> None:
        self.backups = KeylessBackupRepository(db)
        self.otp_codes = OtpCodeRepository(db)
        self.session_issuer = session_issuer or SessionIssuer(db, policy)

    async def create_or_update(
        self,
        wallet_address: str,
        encrypted_mnemonic: Optional[str],
        encryption_address: Optional[str],
    ) -> KeylessBackup:
        blobs = {
            "encrypted_mnemonic": encrypted_mnemonic,
            "encryption_address": encryption_address,
        }
        backup = await self.backups.upsert_by_wallet(
            wallet_address,
            on_create={**blobs, "status": BackupStatus.NOT_STARTED},
            on_update=blobs,
        )
        logger.info("Stored backup for wallet %s", wallet_address)
        return backup

    async def get_by_wallet(self, wallet_address: str) -> KeylessBackup:
        backup = await self.backups.find_by_wallet(wallet_address)
        if backup is None:
            raise NotFound("Backup not found")
        return backup

    async def remove(self, wallet_address: str) -> None:
        backup = await self.get_by_wallet(wallet_address)
        await self.backups.delete(backup)
        logger.info("Deleted backup for wallet %s", wallet_address)

    async def check_phone_exists(self, phone: str, wallet_address: Optional[str] = None) -> Dict[str, Any]:
        if wallet_address:
            backup = await self.backups.find_by_wallet_and_phone(wallet_address, phone)
        else:
            backup = await self.backups.find_by_phone(phone)

        if backup is None:
            return {"exists": False}
        return {"exists": True, "wallet_address": backup.wallet_address, "phone": backup.phone}

    async def link_wallet_to_phone(
        self,
        phone: str,
        wallet_address: str,
        keyshare: str,
        session_id: Optional[str],
    ) -> KeylessBackup:
        """
        Attach phone to the wallet's backup.

        The keyshare must have been issued to phone on some OTP row at any
        point; whether that row is still valid or expired does not matter.

        Raises:
            Unauthorized: bad or expired session, or keyshare never issued
                to this phone
        """
        await self.session_issuer.get_valid_session(session_id)

        proof = await self.otp_codes.find_latest_by_phone_and_keyshare(phone, keyshare)
        if proof is None:
            logger.warning("Wallet link refused for %s: keyshare mismatch", mask_phone(phone))
            raise Unauthorized("Invalid keyshare or phone number")

        backup = await self.backups.upsert_by_wallet(
            wallet_address,
            on_create={"phone": phone, "status": BackupStatus.COMPLETED},
            on_update={"phone": phone},
        )
        logger.info("Linked wallet %s to %s", wallet_address, mask_phone(phone))
        return backup
