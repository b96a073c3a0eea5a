"""Unit tests for authgate/services/token_service.py -- TokenIssuer.

Covers:
- issue() stores only the hash, with an expiry ttl from now
- re-issuing for the same email replaces the previous token
- a unique-index conflict during issue() is retried once
- lookup() rejects unknown, blank and expired tokens
- consume() succeeds exactly once
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from authgate.core.errors import ExpiredTokenError, InvalidTokenError
from authgate.core.security import hash_token
from authgate.models.verification_token import VerificationToken
from authgate.repositories.token_repo import TokenKind
from authgate.services import token_service
from authgate.services.token_service import TokenIssuer


@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer(TokenKind.VERIFICATION, timedelta(hours=1))


async def test_issue_stores_hash_and_expiry(issuer, session_factory):
    before = datetime.now(timezone.utc)
    async with session_factory() as db:
        issued = await issuer.issue(db, "a@x.com")

    assert issued.email == "a@x.com"
    assert len(issued.token) >= 40
    assert before + timedelta(minutes=59) < issued.expires_at <= datetime.now(timezone.utc) + timedelta(hours=1)

    async with session_factory() as db:
        rec = await db.scalar(select(VerificationToken))
    assert rec.id == issued.id
    assert rec.token_hash == hash_token(issued.token)


async def test_issue_replaces_previous_token(issuer, session_factory):
    async with session_factory() as db:
        first = await issuer.issue(db, "a@x.com")
        second = await issuer.issue(db, "a@x.com")
        await issuer.issue(db, "b@x.com")

    assert first.token != second.token
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(VerificationToken)) == 2
        with pytest.raises(InvalidTokenError):
            await issuer.lookup(db, first.token)
        rec = await issuer.lookup(db, second.token)
    assert rec.email == "a@x.com"


def _conflicting_create_token(monkeypatch, times):
    """Patch create_token so its first `times` calls hit the unique email index."""
    real = token_service.create_token
    calls = []

    async def create_token(db, kind, *, email, **kwargs):
        calls.append(email)
        if len(calls) <= times:
            # a concurrent issuance got its row in first
            db.add(VerificationToken(
                email=email,
                token_hash=hash_token(f"other-{len(calls)}"),
                expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
            ))
            await db.flush()
        return await real(db, kind, email=email, **kwargs)

    monkeypatch.setattr(token_service, "create_token", create_token)
    return calls


async def test_issue_retries_once_on_conflict(issuer, session_factory, monkeypatch):
    calls = _conflicting_create_token(monkeypatch, times=1)

    async with session_factory() as db:
        issued = await issuer.issue(db, "a@x.com")

    assert calls == ["a@x.com", "a@x.com"]
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(VerificationToken)) == 1
        rec = await issuer.lookup(db, issued.token)
    assert rec.id == issued.id


async def test_issue_gives_up_after_second_conflict(issuer, session_factory, monkeypatch):
    async with session_factory() as db:
        first = await issuer.issue(db, "a@x.com")

    calls = _conflicting_create_token(monkeypatch, times=2)
    async with session_factory() as db:
        with pytest.raises(IntegrityError):
            await issuer.issue(db, "a@x.com")

    assert len(calls) == 2
    # both attempts rolled back: the earlier token is untouched
    async with session_factory() as db:
        assert await db.scalar(select(func.count()).select_from(VerificationToken)) == 1
        rec = await issuer.lookup(db, first.token)
    assert rec.id == first.id


@pytest.mark.parametrize("token", ["", "   ", None, "unknown-token"])
async def test_lookup_invalid(issuer, session_factory, token):
    async with session_factory() as db:
        with pytest.raises(InvalidTokenError):
            await issuer.lookup(db, token)


async def test_lookup_expired(session_factory):
    issuer = TokenIssuer(TokenKind.PASSWORD_RESET, timedelta(seconds=-5))
    async with session_factory() as db:
        issued = await issuer.issue(db, "a@x.com")
        with pytest.raises(ExpiredTokenError):
            await issuer.lookup(db, issued.token)


def test_expiry_boundary_counts_as_expired():
    rec = VerificationToken(email="a@x.com", token_hash="x", expires_at=datetime(2030, 1, 1))
    at = datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert TokenIssuer.is_expired(rec, now=at)
    assert not TokenIssuer.is_expired(rec, now=at - timedelta(microseconds=1))


async def test_consume_once(issuer, session_factory):
    async with session_factory() as db:
        issued = await issuer.issue(db, "a@x.com")
        rec = await issuer.lookup(db, issued.token)
        await issuer.consume(db, rec)
        await db.commit()

        with pytest.raises(InvalidTokenError):
            await issuer.consume(db, rec)
