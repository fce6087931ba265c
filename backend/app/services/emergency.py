# backend/app/services/emergency.py
"""
Administrative recovery bypass.

Gated only by the shared admin code. The grant is an OTP row with the fixed
emergency code and is_emergency=True, which normal resends never invalidate.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import RecoveryPolicy
from backend.app.core.exceptions import InvalidRequest
from backend.app.models.keyless_backup import BackupStatus
from backend.app.models.otp_code import OtpCode
from backend.app.repositories.keyless_backups import KeylessBackupRepository
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.security.keyshare import verify_admin_code
from backend.app.security.otp_codes import mask_phone
from backend.app.services.keyshare_resolver import KeyshareResolver
from backend.app.services.sessions import SessionIssuer

logger = logging.getLogger(__name__)

EMERGENCY_CREATED_MESSAGE = "Emergency recovery OTP created successfully"


class EmergencyRecoveryService:
    def __init__(
        self,
        db: AsyncSession,
        policy: RecoveryPolicy,
        session_issuer: Optional[SessionIssuer] = None,
    ) -> None:
        self.otp_codes = OtpCodeRepository(db)
        self.backups = KeylessBackupRepository(db)
        self.resolver = KeyshareResolver(db)
        self.policy = policy
        self.session_issuer = session_issuer or SessionIssuer(db, policy)

    async def emergency_recovery(self, phone: str, wallet_address: str, admin_code: str) -> Dict[str, Any]:
        if not verify_admin_code(self.policy.emergency_admin_code, admin_code):
            logger.warning("Emergency recovery refused for %s: bad admin code", mask_phone(phone))
            raise InvalidRequest("Invalid admin code")

        backup = await self.backups.find_by_wallet_and_phone(wallet_address, phone)
        if backup is None:
            raise InvalidRequest("No backup found for this phone and wallet")

        keyshare = await self.resolver.claim_or_get_keyshare(phone)

        await self.otp_codes.insert(
            OtpCode(
                phone=phone,
                code=self.policy.emergency_code,
                keyshare=keyshare,
                is_valid=True,
                is_emergency=True,
                expires_at=datetime.now(timezone.utc) + timedelta(days=self.policy.emergency_code_ttl_days),
            )
        )

        issued = await self.session_issuer.create_session(keyshare, phone)
        await self.backups.update_status(wallet_address, BackupStatus.EMERGENCY_RECOVERY)

        logger.warning(
            "Emergency recovery granted for %s on wallet %s",
            mask_phone(phone),
            wallet_address,
        )
        return {
            "success": True,
            "message": EMERGENCY_CREATED_MESSAGE,
            "keyshare": keyshare,
            "token": issued.token,
            "session_id": issued.session_id,
        }
