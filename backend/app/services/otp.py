# backend/app/services/otp.py
"""
OTP issuance and verification.

Issuance claims the phone's keyshare before the code is written, so every
OTP row carries a non-null keyshare from the moment it exists. Verification
reads the keyshare of record again instead of trusting the matched row.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import RecoveryPolicy
from backend.app.core.exceptions import InvalidRequest
from backend.app.models.otp_code import OtpCode
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.security.otp_codes import generate_otp_code, mask_phone
from backend.app.services.keyshare_resolver import KeyshareResolver
from backend.app.services.sessions import SessionIssuer
from backend.app.services.sms import SmsDeliveryError, SmsSender

logger = logging.getLogger(__name__)

OTP_SENT_MESSAGE = "OTP code sent successfully"
OTP_VERIFIED_MESSAGE = "OTP code verified successfully"
OTP_REJECTED_MESSAGE = "Invalid or expired OTP code"


class OtpService:
    def __init__(
        self,
        db: AsyncSession,
        sms_sender: SmsSender,
        policy: RecoveryPolicy,
        session_issuer: Optional[SessionIssuer] = None,
    ) -> None:
        self.otp_codes = OtpCodeRepository(db)
        self.resolver = KeyshareResolver(db)
        self.sms_sender = sms_sender
        self.policy = policy
        self.session_issuer = session_issuer or SessionIssuer(db, policy)

    async def send_otp(self, phone: str) -> Dict[str, Any]:
        """
        Issue a fresh code for phone and text it.

        Raises:
            InvalidRequest: the SMS could not be delivered; the new code is
                invalidated before raising
        """
        code = self._draw_code()
        keyshare = await self.resolver.claim_or_get_keyshare(phone)

        # Emergency grants survive a normal resend
        superseded = await self.otp_codes.invalidate_all_valid_non_emergency(phone)
        if superseded:
            logger.debug("Invalidated %d pending code(s) for %s", superseded, mask_phone(phone))

        record = await self.otp_codes.insert(
            OtpCode(
                phone=phone,
                code=code,
                keyshare=keyshare,
                is_valid=True,
                is_emergency=False,
                expires_at=datetime.now(timezone.utc) + timedelta(minutes=self.policy.otp_expiration_minutes),
            )
        )
        # A concurrent send may have inserted between our invalidate and insert
        await self.otp_codes.invalidate_valid_non_emergency_before(phone, record.id)

        try:
            await self.sms_sender.send(phone, self.policy.render_sms(code))
        except SmsDeliveryError as e:
            await self.otp_codes.invalidate_by_phone_and_code(phone, code)
            logger.warning("OTP delivery to %s failed, code withdrawn", mask_phone(phone))
            raise InvalidRequest(f"Error sending OTP code: {e}") from e

        logger.info("OTP issued to %s", mask_phone(phone))
        return {"success": True, "message": OTP_SENT_MESSAGE}

    def _draw_code(self) -> str:
        # Normal codes must never collide with the emergency code
        code = generate_otp_code()
        while code == self.policy.emergency_code:
            code = generate_otp_code()
        return code

    async def verify_otp(self, phone: str, code: str) -> Dict[str, Any]:
        """
        Consume a code and open a session.

        A wrong, expired or already used code yields success=False with one
        generic message; the three cases are indistinguishable to the caller.
        """
        record = await self.otp_codes.find_valid_unexpired(phone, code, datetime.now(timezone.utc))
        if record is None:
            logger.info("OTP rejected for %s", mask_phone(phone))
            return {"success": False, "message": OTP_REJECTED_MESSAGE}

        # The claim may roll the session back, which expires loaded rows
        otp_id = record.id
        keyshare = await self.resolver.claim_or_get_keyshare(phone)
        if not await self.otp_codes.mark_used_and_set_keyshare(otp_id, keyshare):
            # Consumed by a concurrent verification between our read and write
            logger.info("OTP rejected for %s: already used", mask_phone(phone))
            return {"success": False, "message": OTP_REJECTED_MESSAGE}

        issued = await self.session_issuer.create_session(keyshare, phone)
        logger.info("OTP verified for %s", mask_phone(phone))
        return {
            "success": True,
            "message": OTP_VERIFIED_MESSAGE,
            "token": issued.token,
            "keyshare": keyshare,
            "session_id": issued.session_id,
        }
