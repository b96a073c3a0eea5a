# authgate/models/verification_token.py
from __future__ import annotations

from datetime import datetime
from sqlalchemy import String, DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column
from authgate.db.database import Base


class VerificationToken(Base):
    __tablename__ = "verification_tokens"
    # ids of consumed tokens are never handed out again
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # one live token per email
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # SHA-256 of the raw token, see core.security.hash_token
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
