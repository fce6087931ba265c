# backend/app/security/otp_codes.py
"""
One-time SMS codes.

Key points:
- 6-digit codes, uniformly drawn from 100000-999999 (never a leading zero)
- secrets module as the randomness source
- Codes are compared by the store query, not here
"""
import secrets

OTP_CODE_LENGTH = 6

_OTP_CODE_MIN = 10 ** (OTP_CODE_LENGTH - 1)
_OTP_CODE_SPAN = 9 * _OTP_CODE_MIN


def generate_otp_code() -> str:
    """Return a random 6-digit code as a string."""
    return str(_OTP_CODE_MIN + secrets.randbelow(_OTP_CODE_SPAN))


def normalize_otp_code(code: str) -> str:
    """Strip whitespace users tend to paste along with the code."""
    return (code or "").strip().replace(" ", "")


def is_well_formed_code(code: str) -> bool:
    code = normalize_otp_code(code)
    return len(code) == OTP_CODE_LENGTH and code.isdigit()


def mask_phone(phone: str) -> str:
    """Keep the last 4 digits for log lines, e.g. +57******4567."""
    if not phone or len(phone) <= 4:
        return "****"
    prefix = phone[:3] if phone.startswith("+") else ""
    return f"{prefix}{'*' * (len(phone) - len(prefix) - 4)}{phone[-4:]}"
