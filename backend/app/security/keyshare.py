# backend/app/security/keyshare.py
"""
Security utilities for keyshares and shared secrets.

This module handles:
- Minting new keyshares (32 random bytes, hex-encoded)
- Constant-time comparison of shared secrets
- Format checks on keyshares supplied by clients

A keyshare is reused bit-for-bit once bound to a phone; nothing here
derives or re-hashes an existing value.
"""
import re
import secrets
from typing import Optional


# Raw entropy of a freshly minted keyshare
KEYSHARE_BYTES = 32

# Hex encoding doubles the length
KEYSHARE_HEX_LENGTH = KEYSHARE_BYTES * 2

_KEYSHARE_RE = re.compile(r"^[0-9a-f]{%d}$" % KEYSHARE_HEX_LENGTH)


def generate_keyshare() -> str:
    """
    Generate a new keyshare from a cryptographically secure source.

    Returns:
        64-character lowercase hex string (32 random bytes)
    """
    return secrets.token_hex(KEYSHARE_BYTES)


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.

    Args:
        a: Expected value (configured secret)
        b: Provided value

    Returns:
        True if strings match exactly, False otherwise
    """
    a_bytes = a.encode("utf-8")
    b_bytes = b.encode("utf-8")
    if len(a_bytes) != len(b_bytes):
        # Still do the comparison to keep timing flat
        secrets.compare_digest(a_bytes, a_bytes)
        return False
    return secrets.compare_digest(a_bytes, b_bytes)


def verify_admin_code(configured: Optional[str], provided: Optional[str]) -> bool:
    """
    Check an emergency admin code against the configured shared secret.

    An unset or empty configured secret never matches.

    Args:
        configured: Secret from configuration (may be None)
        provided: Code supplied by the caller

    Returns:
        True only for an exact match against a configured secret
    """
    if not configured or provided is None:
        return False
    return constant_time_compare(configured, provided)


def is_minted_keyshare(value: str) -> bool:
    """
    Whether a value has the shape of a keyshare minted by this service.

    Older rows may hold keyshares of another shape; callers must not
    reject those, this is informational only.
    """
    return bool(_KEYSHARE_RE.match(value or ""))
