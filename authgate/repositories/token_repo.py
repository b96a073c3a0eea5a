# authgate/repositories/token_repo.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Type, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.models.password_reset_token import PasswordResetToken
from authgate.models.verification_token import VerificationToken

TokenRecord = Union[VerificationToken, PasswordResetToken]


class TokenKind(str, Enum):
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"


_MODELS: dict[TokenKind, Type[TokenRecord]] = {
    TokenKind.VERIFICATION: VerificationToken,
    TokenKind.PASSWORD_RESET: PasswordResetToken,
}


def model_for(kind: TokenKind) -> Type[TokenRecord]:
    return _MODELS[kind]


async def find_token(db: AsyncSession, kind: TokenKind, token_hash: str) -> Optional[TokenRecord]:
    model = model_for(kind)
    stmt = select(model).where(model.token_hash == token_hash).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def create_token(
    db: AsyncSession,
    kind: TokenKind,
    *,
    email: str,
    token_hash: str,
    expires_at: datetime,
    commit: bool = True,
) -> TokenRecord:
    rec = model_for(kind)(email=email, token_hash=token_hash, expires_at=expires_at)
    db.add(rec)
    await db.flush()
    if commit:
        await db.commit()
    return rec


async def delete_token(db: AsyncSession, kind: TokenKind, token_id: int, *, commit: bool = True) -> bool:
    """
    Compare-and-delete: True only for the one caller whose DELETE removed the
    row. A concurrent consumer of the same token sees False.
    """
    model = model_for(kind)
    res = await db.execute(
        delete(model)
        .where(model.id == token_id)
        .execution_options(synchronize_session=False)
    )
    if commit:
        await db.commit()
    return res.rowcount == 1


async def delete_tokens_for_email(db: AsyncSession, kind: TokenKind, email: str, *, commit: bool = True) -> int:
    model = model_for(kind)
    res = await db.execute(
        delete(model)
        .where(model.email == email)
        .execution_options(synchronize_session=False)
    )
    if commit:
        await db.commit()
    return res.rowcount


async def purge_expired_tokens(db: AsyncSession, kind: TokenKind, now: datetime) -> int:
    model = model_for(kind)
    res = await db.execute(
        delete(model)
        .where(model.expires_at <= now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return res.rowcount
