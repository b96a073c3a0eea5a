# authgate/services/token_service.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
import secrets

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core.errors import ExpiredTokenError, InvalidTokenError
from authgate.core.security import hash_token
from authgate.repositories.token_repo import (
    TokenKind,
    TokenRecord,
    create_token,
    delete_token,
    delete_tokens_for_email,
    find_token,
)

log = logging.getLogger(__name__)

# 32 random bytes, URL-safe
TOKEN_BYTES = 32
# one retry when a concurrent issuance for the same email wins the unique index
ISSUE_ATTEMPTS = 2


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class IssuedToken:
    id: int
    email: str
    token: str  # raw value, only ever handed to the notifier
    expires_at: datetime


class TokenIssuer:
    """Issues, looks up and consumes single-use tokens of one kind."""

    def __init__(self, kind: TokenKind, ttl: timedelta):
        self.kind = kind
        self.ttl = ttl

    async def issue(self, db: AsyncSession, email: str) -> IssuedToken:
        """
        Replace any token of this kind for `email` with a fresh one.
        Delete and insert are committed together, the unique index on
        email rejects a concurrent second insert.
        """
        attempt = 0
        while True:
            attempt += 1
            raw = secrets.token_urlsafe(TOKEN_BYTES)
            expires_at = _now_utc() + self.ttl
            try:
                removed = await delete_tokens_for_email(db, self.kind, email, commit=False)
                rec = await create_token(
                    db,
                    self.kind,
                    email=email,
                    token_hash=hash_token(raw),
                    expires_at=expires_at,
                    commit=False,
                )
                await db.commit()
            except IntegrityError:
                await db.rollback()
                if attempt >= ISSUE_ATTEMPTS:
                    raise
                log.info("Concurrent %s token issuance for %s, retrying", self.kind.value, email)
                continue

            log.info(
                "Issued %s token id=%s for %s (replaced %d)",
                self.kind.value, rec.id, email, removed,
            )
            return IssuedToken(id=rec.id, email=email, token=raw, expires_at=expires_at)

    async def lookup(self, db: AsyncSession, token: str) -> TokenRecord:
        """Return the live record for a raw token or raise Invalid/Expired."""
        token = (token or "").strip() if isinstance(token, str) else ""
        if not token:
            raise InvalidTokenError()

        rec = await find_token(db, self.kind, hash_token(token))
        if rec is None:
            raise InvalidTokenError()

        if self.is_expired(rec):
            raise ExpiredTokenError()
        return rec

    @staticmethod
    def is_expired(rec: TokenRecord, now: Optional[datetime] = None) -> bool:
        return _as_aware_utc(rec.expires_at) <= (now or _now_utc())

    async def consume(self, db: AsyncSession, rec: TokenRecord) -> None:
        """
        Delete the token inside the caller's transaction. Raises
        InvalidTokenError when another request already consumed it.
        The caller commits.
        """
        if not await delete_token(db, self.kind, rec.id, commit=False):
            raise InvalidTokenError()
