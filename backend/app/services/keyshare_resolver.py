# backend/app/services/keyshare_resolver.py
"""
Decides which keyshare belongs to a phone.

One phone keeps one keyshare for good. The value wraps a distributed key
share, so handing out a second one leaves the wallet's shares out of sync
with no way back.

Two entry points:
- resolve_keyshare: read-only. Latest OTP row with a keyshare, else a fresh
  one. Nothing is persisted, so two concurrent calls for a new phone can
  return different values.
- claim_or_get_keyshare: what the flows use. Goes through the keyshare
  ledger so that the first writer wins and everyone else reads its value.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.repositories.keyshare_ledger import KeyshareLedgerRepository
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.security.keyshare import generate_keyshare, is_minted_keyshare
from backend.app.security.otp_codes import mask_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedKeyshare:
    value: str
    is_new: bool


class KeyshareResolver:
    def __init__(self, db: AsyncSession) -> None:
        self.otp_codes = OtpCodeRepository(db)
        self.ledger = KeyshareLedgerRepository(db)

    async def resolve_keyshare(self, phone: str) -> ResolvedKeyshare:
        latest = await self.otp_codes.find_latest_with_keyshare(phone)
        if latest is not None:
            # Reused verbatim, never re-derived
            return ResolvedKeyshare(value=latest.keyshare, is_new=False)
        return ResolvedKeyshare(value=generate_keyshare(), is_new=True)

    async def claim_or_get_keyshare(self, phone: str) -> str:
        # Always re-read: another request may have claimed since our last look
        recorded = await self.ledger.get(phone)
        if recorded is not None:
            return recorded.keyshare

        candidate = await self.resolve_keyshare(phone)
        if not is_minted_keyshare(candidate.value):
            # Reused verbatim whatever its format
            logger.info("Adopting a keyshare in a legacy format for %s", mask_phone(phone))
        keyshare = await self.ledger.insert_if_absent(phone, candidate.value)
        if keyshare == candidate.value:
            if candidate.is_new:
                logger.info("Minted first keyshare for %s", mask_phone(phone))
            else:
                logger.info("Recorded existing keyshare for %s in the ledger", mask_phone(phone))
        return keyshare
