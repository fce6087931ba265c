from backend.app.services.emergency import EmergencyRecoveryService
from backend.app.services.keyless_backup import KeylessBackupService
from backend.app.services.keyshare_resolver import KeyshareResolver, ResolvedKeyshare
from backend.app.services.otp import OtpService
from backend.app.services.sessions import IssuedSession, SessionIssuer
from backend.app.services.sms import (
    LoggingSmsSender,
    SmsDeliveryError,
    SmsSender,
    TwilioSmsSender,
    build_sms_sender,
)

__all__ = [
    "EmergencyRecoveryService",
    "IssuedSession",
    "KeylessBackupService",
    "KeyshareResolver",
    "LoggingSmsSender",
    "OtpService",
    "ResolvedKeyshare",
    "SessionIssuer",
    "SmsDeliveryError",
    "SmsSender",
    "TwilioSmsSender",
    "build_sms_sender",
]
