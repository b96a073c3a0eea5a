# authgate/core/config.py
import asyncio
from dataclasses import dataclass
from datetime import timedelta
from functools import partial
from typing import Awaitable, Callable, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, EmailStr

# bcrypt work factor unless BCRYPT_ROUNDS says otherwise
DEFAULT_BCRYPT_ROUNDS = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,  # .env keys may be upper or lower case
        extra="forbid",        # only known variables
    )

    # ------------------------------------------------------------
    # 🧭 General
    # ------------------------------------------------------------
    APP_NAME: str = "authgate"
    APP_ENV: str = "development"
    SECRET_KEY: str = Field(..., min_length=16)
    LOG_LEVEL: str = "INFO"

    # Base URL for links in verification / reset emails
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8000"

    # Access token issued after a successful credential exchange
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ------------------------------------------------------------
    # 🗄️ Database
    # ------------------------------------------------------------
    DB_URL: str = "sqlite+aiosqlite:///./authgate.db"

    # ------------------------------------------------------------
    # 📩 SMTP / Mail
    # ------------------------------------------------------------
    MAIL_FROM: EmailStr = "no-reply@example.com"
    MAIL_FROM_NAME: str = "authgate"
    MAIL_SERVER: str | None = None  # unset: mails are only logged
    MAIL_PORT: int = 587
    MAIL_USERNAME: str | None = None
    MAIL_PASSWORD: str | None = None
    MAIL_USE_TLS: bool = True

    # ------------------------------------------------------------
    # 🔐 Passwords & tokens
    # ------------------------------------------------------------
    PASSWORD_SCHEME: str = "bcrypt"  # "bcrypt" | "argon2"
    BCRYPT_ROUNDS: int = Field(DEFAULT_BCRYPT_ROUNDS, ge=4, le=31)
    VERIFICATION_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Pause before the register response is returned
    REGISTER_DELAY_MS: int = 400


# ------------------------------------------------------------
# Global settings instance
# ------------------------------------------------------------
settings = Settings()


# ------------------------------------------------------------
# Workflow configuration (passed explicitly into AuthWorkflow)
# ------------------------------------------------------------
@dataclass(frozen=True)
class AuthConfig:
    verification_ttl: timedelta = timedelta(minutes=60)
    reset_ttl: timedelta = timedelta(minutes=60)
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    # awaited after a successful registration, before the result is returned
    post_register_hook: Optional[Callable[[], Awaitable[None]]] = None

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "AuthConfig":
        delay = s.REGISTER_DELAY_MS / 1000
        return cls(
            verification_ttl=timedelta(minutes=s.VERIFICATION_TOKEN_EXPIRE_MINUTES),
            reset_ttl=timedelta(minutes=s.RESET_TOKEN_EXPIRE_MINUTES),
            bcrypt_rounds=s.BCRYPT_ROUNDS,
            post_register_hook=partial(asyncio.sleep, delay) if delay > 0 else None,
        )
