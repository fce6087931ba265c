# backend/app/security/jwt.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from backend.app.core.config import settings

CLIENT_APP_VERSION = "1.0.0"


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jose.JWTError on a bad signature or an expired token."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def create_client_token(client_id: str, app_version: str = CLIENT_APP_VERSION) -> str:
    """Bearer token a client application presents to the OTP endpoints."""
    return create_access_token({"clientId": client_id, "appVersion": app_version})


__all__ = [
    "CLIENT_APP_VERSION",
    "JWTError",
    "create_access_token",
    "create_client_token",
    "decode_access_token",
]
