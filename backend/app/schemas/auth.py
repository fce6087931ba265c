# backend/app/schemas/auth.py
from typing import Optional

from pydantic import BaseModel


class ClientTokenPayload(BaseModel):
    """Claims of the bearer token a client app presents to the OTP endpoints."""
    clientId: str
    appVersion: Optional[str] = None


class SessionTokenPayload(BaseModel):
    """Claims signed into the token handed out after verification or emergency recovery."""
    sub: str
    clientId: str
    appVersion: str
    sessionId: str
    keyshare: str
