# backend/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- SECRET_KEY must be overridden in production via environment
- EMERGENCY_RECOVERY_CODE has no default; while unset, emergency
  recovery is refused for every request
- Twilio credentials are optional; without them SMS bodies are only logged
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RecoveryPolicy:
    """
    Values the OTP and emergency recovery services are constructed with.

    Built once from Settings so the services never read the environment.
    """
    otp_expiration_minutes: int = 5
    emergency_admin_code: Optional[str] = None
    emergency_code: str = "777777"
    emergency_code_ttl_days: int = 7
    session_ttl_hours: int = 24
    sms_template: str = "Your verification code is: {code}. Valid for {minutes} minutes."

    def render_sms(self, code: str) -> str:
        return self.sms_template.format(code=code, minutes=self.otp_expiration_minutes)


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "Keyless Recovery"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # Security: JWT Configuration
    # Session tokens live as long as the session record (24h)
    # ─────────────────────────────────────────────────────────────
    SECRET_KEY: str = "INSECURE_DEV_KEY_CHANGE_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # postgres:// and postgresql:// are rewritten to asyncpg,
    # sqlite:/// is rewritten to aiosqlite
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./keyless_recovery.db"
    DATABASE_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: Optional[str]) -> str:
        """Rewrite sync driver URLs to their async equivalents."""
        if v is None:
            return "sqlite+aiosqlite:///./keyless_recovery.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # Comma-separated; empty string means no cross-origin access
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    # ─────────────────────────────────────────────────────────────
    # SMS delivery (Twilio REST API)
    # ─────────────────────────────────────────────────────────────
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_API_BASE_URL: str = "https://api.twilio.com/2010-04-01"
    SMS_TIMEOUT_SECONDS: float = 10.0

    # ─────────────────────────────────────────────────────────────
    # OTP / recovery policy
    # ─────────────────────────────────────────────────────────────
    OTP_EXPIRATION_MINUTES: int = 5
    EMERGENCY_RECOVERY_CODE: Optional[str] = None
    EMERGENCY_CODE_TTL_DAYS: int = 7
    SESSION_TTL_HOURS: int = 24

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.DATABASE_URL.lower()

    @property
    def twilio_configured(self) -> bool:
        return bool(
            self.TWILIO_ACCOUNT_SID
            and self.TWILIO_AUTH_TOKEN
            and self.TWILIO_PHONE_NUMBER
        )

    def recovery_policy(self) -> RecoveryPolicy:
        return RecoveryPolicy(
            otp_expiration_minutes=self.OTP_EXPIRATION_MINUTES,
            emergency_admin_code=self.EMERGENCY_RECOVERY_CODE or None,
            emergency_code_ttl_days=self.EMERGENCY_CODE_TTL_DAYS,
            session_ttl_hours=self.SESSION_TTL_HOURS,
        )


@lru_cache()
def get_settings() -> Settings:
    """Settings are parsed from the environment once per process."""
    return Settings()


settings = get_settings()
