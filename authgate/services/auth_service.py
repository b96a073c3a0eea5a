# authgate/services/auth_service.py
from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from authgate.core.config import AuthConfig
from authgate.core.errors import (
    AuthError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    SamePasswordError,
    UnexpectedError,
    ValidationError,
)
from authgate.core.security import hash_password, verify_password
from authgate.repositories.token_repo import TokenKind, purge_expired_tokens
from authgate.repositories.user_repo import (
    create_user,
    get_by_email,
    mark_user_verified,
    update_password_hash_and_changed_at,
)
from authgate.schemas.auth import (
    ActionResult,
    LoginIn,
    PasswordResetCompleteIn,
    PasswordResetStartIn,
    RegisterIn,
    ResendVerificationIn,
    VerifyTokenIn,
)
from authgate.services.credential_exchange import CredentialExchange, SignInStatus
from authgate.services.email_service import Notifier
from authgate.services.token_service import TokenIssuer

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


# --------------- Helpers ---------------
def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _ok(message: str, **extra: Any) -> ActionResult:
    return ActionResult(status=200, message=message, **extra)


def _validate(model: Type[M], payload: dict) -> M:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        # field names only, never the submitted values
        fields = ",".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        log.info("%s rejected: invalid %s", model.__name__, fields or "payload")
        raise ValidationError() from e


def reported(fn: Callable[..., Awaitable[ActionResult]]) -> Callable[..., Awaitable[ActionResult]]:
    """Turn expected AuthErrors into a 400 ActionResult. Everything else propagates."""

    @functools.wraps(fn)
    async def wrapper(self: "AuthWorkflow", *args: Any, **kwargs: Any) -> ActionResult:
        try:
            return await fn(self, *args, **kwargs)
        except AuthError as err:
            log.info("%s failed: %s (%s)", fn.__name__, err.code, err.message)
            return ActionResult(status=400, message=err.message, error=err.code)

    return wrapper


# --------------- Workflow ---------------
class AuthWorkflow:
    """
    Login, registration, email verification and password reset.

    Every public operation returns an ActionResult: 200 on success, 400 with
    a message and an error code for expected failures. Store, mail and
    credential-exchange crashes are not caught.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Notifier,
        exchange: CredentialExchange,
        config: Optional[AuthConfig] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.exchange = exchange
        self.config = config or AuthConfig()
        self.verification_tokens = TokenIssuer(TokenKind.VERIFICATION, self.config.verification_ttl)
        self.reset_tokens = TokenIssuer(TokenKind.PASSWORD_RESET, self.config.reset_ttl)

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(hash_password, password, rounds=self.config.bcrypt_rounds)

    # ---------- Login ----------
    @reported
    async def login(self, email: Any, password: Any) -> ActionResult:
        data = _validate(LoginIn, {"email": email, "password": password})

        async with self.session_factory() as db:
            user = await get_by_email(db, data.email)
            if user is None or not user.email or not user.password_hash:
                raise NotFoundError("Email does not exist")

            issued = None
            if not user.is_verified:
                # unverified accounts are never authenticated, only re-prompted
                issued = await self.verification_tokens.issue(db, data.email)

        if issued is not None:
            await self.notifier.send_verification_email(issued.email, issued.token)
            return _ok("Confirmation email sent")

        result = await self.exchange.sign_in(data.email, data.password)
        match result.status:
            case SignInStatus.SUCCESS:
                log.info("Login successful for %s", data.email)
                return _ok("Login successful", access_token=result.access_token)
            case SignInStatus.INVALID_CREDENTIALS:
                raise InvalidCredentialsError()
            case SignInStatus.FAILED:
                log.warning("Credential exchange failed for %s: %s", data.email, result.reason)
                raise UnexpectedError("Something went wrong")

    # ---------- Register ----------
    @reported
    async def register(self, email: Any, name: Any, password: Any) -> ActionResult:
        data = _validate(RegisterIn, {"email": email, "name": name, "password": password})
        pwd_hash = await self._hash(data.password)

        async with self.session_factory() as db:
            if await get_by_email(db, data.email):
                raise ConflictError()
            try:
                await create_user(db, email=data.email, name=data.name, password_hash=pwd_hash)
            except IntegrityError as e:
                # lost a race against a concurrent registration
                raise ConflictError() from e

            issued = await self.verification_tokens.issue(db, data.email)

        await self.notifier.send_verification_email(issued.email, issued.token)
        log.info("Registered %s", data.email)

        if self.config.post_register_hook is not None:
            await self.config.post_register_hook()
        return _ok("Register successful")

    # ---------- Email verification ----------
    @reported
    async def verify_token(self, token: Any) -> ActionResult:
        data = _validate(VerifyTokenIn, {"token": token})

        async with self.session_factory() as db:
            rec = await self.verification_tokens.lookup(db, data.token)
            token_email = rec.email

            user = await get_by_email(db, token_email)
            if user is None:
                raise NotFoundError()

            # delete + update commit together; a concurrent verify of the
            # same token loses the compare-and-delete
            await self.verification_tokens.consume(db, rec)
            await mark_user_verified(db, user, email=token_email, verified_at=_now_utc(), commit=False)
            await db.commit()

        log.info("Email verified for %s", token_email)
        return _ok("Email verified")

    @reported
    async def resend_verification(self, email: Any) -> ActionResult:
        data = _validate(ResendVerificationIn, {"email": email})

        async with self.session_factory() as db:
            user = await get_by_email(db, data.email)
            if user is None:
                raise NotFoundError()
            if user.is_verified:
                raise ConflictError("Email already verified")
            issued = await self.verification_tokens.issue(db, data.email)

        await self.notifier.send_verification_email(issued.email, issued.token)
        return _ok("Confirmation email sent")

    # ---------- Password reset ----------
    @reported
    async def request_password_reset(self, email: Any) -> ActionResult:
        data = _validate(PasswordResetStartIn, {"email": email})

        async with self.session_factory() as db:
            if await get_by_email(db, data.email) is None:
                raise NotFoundError()
            issued = await self.reset_tokens.issue(db, data.email)

        await self.notifier.send_reset_password_email(issued.email, issued.token)
        return _ok("Password reset email sent")

    @reported
    async def reset_password(self, token: Any, new_password: Any) -> ActionResult:
        data = _validate(PasswordResetCompleteIn, {"token": token, "new_password": new_password})

        async with self.session_factory() as db:
            rec = await self.reset_tokens.lookup(db, data.token)

            user = await get_by_email(db, rec.email)
            if user is None:
                raise NotFoundError()

            if user.password_hash and await run_in_threadpool(
                verify_password, data.new_password, user.password_hash
            ):
                raise SamePasswordError()

            pwd_hash = await self._hash(data.new_password)
            await self.reset_tokens.consume(db, rec)
            await update_password_hash_and_changed_at(db, user, pwd_hash, _now_utc(), commit=False)
            await db.commit()
            email = user.email

        log.info("Password reset for %s", email)
        return _ok("Password reset successfully")

    # ---------- Maintenance ----------
    async def purge_expired_tokens(self) -> int:
        """Delete expired tokens of both kinds; returns the number removed."""
        now = _now_utc()
        removed = 0
        async with self.session_factory() as db:
            for kind in TokenKind:
                removed += await purge_expired_tokens(db, kind, now)
        if removed:
            log.info("Purged %d expired tokens", removed)
        return removed
