# authgate/services/credential_exchange.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from authgate.core.config import settings
from authgate.core.security import JWTService, jwt_service, verify_password
from authgate.repositories.user_repo import get_by_email


class SignInStatus(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    FAILED = "failed"


@dataclass(frozen=True)
class SignInResult:
    status: SignInStatus
    access_token: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def success(cls, access_token: str) -> "SignInResult":
        return cls(SignInStatus.SUCCESS, access_token=access_token)

    @classmethod
    def invalid_credentials(cls) -> "SignInResult":
        return cls(SignInStatus.INVALID_CREDENTIALS)

    @classmethod
    def failed(cls, reason: str) -> "SignInResult":
        return cls(SignInStatus.FAILED, reason=reason)


class CredentialExchange(Protocol):
    async def sign_in(self, email: str, password: str) -> SignInResult: ...


class PasswordCredentialExchange:
    """Checks email/password against the stored hash and mints a JWT."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        jwt: JWTService = jwt_service,
        expires_delta: timedelta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    ):
        self.session_factory = session_factory
        self.jwt = jwt
        self.expires_delta = expires_delta

    async def sign_in(self, email: str, password: str) -> SignInResult:
        async with self.session_factory() as db:
            user = await get_by_email(db, email)

        if user is None or not user.password_hash:
            return SignInResult.invalid_credentials()
        if not user.is_verified:
            return SignInResult.failed("EMAIL_NOT_VERIFIED")

        ok = await run_in_threadpool(verify_password, password, user.password_hash)
        if not ok:
            return SignInResult.invalid_credentials()

        token = self.jwt.create_token(
            subject=user.id,
            expires_delta=self.expires_delta,
            claims={"email": user.email, "name": user.name},
        )
        return SignInResult.success(token)
