from backend.app.repositories.keyless_backups import KeylessBackupRepository
from backend.app.repositories.keyshare_ledger import KeyshareLedgerRepository
from backend.app.repositories.otp_codes import OtpCodeRepository
from backend.app.repositories.sessions import SessionRepository

__all__ = [
    "KeylessBackupRepository",
    "KeyshareLedgerRepository",
    "OtpCodeRepository",
    "SessionRepository",
]
