# authgate/repositories/user_repo.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from authgate.models.user import User


# ------------------------------------------------------------
# READ
# ------------------------------------------------------------
async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return await db.scalar(select(User).where(User.email == email))


# ------------------------------------------------------------
# CREATE
# ------------------------------------------------------------
async def create_user(
    db: AsyncSession,
    *,
    email: str,
    name: Optional[str],
    password_hash: Optional[str],
    commit: bool = True,
) -> User:
    user = User(email=email, name=name, password_hash=password_hash)
    db.add(user)
    try:
        await db.flush()
        if commit:
            await db.commit()
    except IntegrityError:
        await db.rollback()
        raise
    await db.refresh(user)
    return user


# ------------------------------------------------------------
# UPDATE
# ------------------------------------------------------------
async def update_password_hash_and_changed_at(
    db: AsyncSession,
    user: User,
    pwd_hash: str,
    changed_at: datetime,
    *,
    commit: bool = True,
) -> None:
    user.password_hash = pwd_hash
    user.password_changed_at = changed_at
    db.add(user)
    if commit:
        await db.commit()


async def mark_user_verified(
    db: AsyncSession,
    user: User,
    *,
    email: str,
    verified_at: Optional[datetime] = None,
    commit: bool = True,
) -> None:
    """
    Set the verification timestamp. The email is (re)written from the token
    so the verified address is exactly the one the token was sent to.
    """
    user.email_verified_at = verified_at or datetime.now(timezone.utc)
    user.email = email
    db.add(user)
    if commit:
        await db.commit()
