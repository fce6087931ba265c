from backend.app.models.keyless_backup import BackupStatus, KeylessBackup
from backend.app.models.keyshare_ledger import KeyshareLedger
from backend.app.models.otp_code import OtpCode
from backend.app.models.otp_session import OtpSession

__all__ = [
    "BackupStatus",
    "KeylessBackup",
    "KeyshareLedger",
    "OtpCode",
    "OtpSession",
]
