from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "LocalHunt Verification"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Email Configuration ─────────────────────
    MAIL_MAILER: str = "smtp"
    MAIL_HOST: str = "smtp.gmail.com"
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = "your-email-id"
    MAIL_PASSWORD: str = "your-password"
    MAIL_ENCRYPTION: str = "tls"
    MAIL_FROM_ADDRESS: str = "example@localhost"
    MAIL_FROM_NAME: str = "LocalHunt"
    MAIL_TIMEOUT: int = 30  # seconds, SMTP connect and commands

    EMAIL_RELAY_URL: str = ""
    EMAIL_RELAY_API_KEY: str = ""
    EMAIL_RELAY_TIMEOUT: int = 30

    # ── Verification codes ──────────────────────
    VERIFICATION_CODE_TTL_MINUTES: int = 10
    VERIFICATION_SWEEP_INTERVAL_SECONDS: int = 60  # 0 disables the periodic sweep
    VERIFICATION_SWEEP_ON_VERIFY: bool = True

    # ── Rate limiting ───────────────────────────
    REDIS_URL: Optional[str] = None
    FORCE_IN_MEMORY_RATE_LIMITER: bool = False
    WHITELIST_IPS: List[str] = []
    # requests per minute, per client IP
    RATE_LIMITS: Dict[str, int] = {
        "/api/v1/auth/send-verification": 5,
        "/api/v1/auth/verify-code": 20,
    }

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
