# authgate/core/security.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import hashlib
import logging
import jwt

# bcrypt_sha256 pre-hashes, so bcrypt's 72-byte input limit never truncates a password
from passlib.hash import bcrypt, bcrypt_sha256, argon2

from authgate.core.config import settings

log = logging.getLogger(__name__)

# =============================
# 🔐 Password hashing
# =============================

# "bcrypt" (default, work factor BCRYPT_ROUNDS) | "argon2"
PASSWORD_SCHEME = settings.PASSWORD_SCHEME.lower().strip()


# --- scheme detection by hash prefix ---
def _scheme_of(hash_str: str) -> str:
    if not hash_str:
        return "unknown"
    h = hash_str.lower()
    if h.startswith("$argon2"):                  # e.g. $argon2id$...
        return "argon2"
    if h.startswith("$bcrypt-sha256$"):          # passlib's bcrypt_sha256
        return "bcrypt_sha256"
    if h.startswith("$2a$") or h.startswith("$2b$") or h.startswith("$2y$"):
        return "bcrypt"                          # plain bcrypt, verify only
    return "unknown"


def hash_password(password: str, *, rounds: int | None = None, scheme: str | None = None) -> str:
    """
    Slow, salted one-way hash of a password.
    - bcrypt_sha256 with `rounds` (default settings.BCRYPT_ROUNDS)
    - argon2id when the scheme is "argon2"
    Blocking: call it through the thread pool from async code.
    """
    scheme = (scheme or PASSWORD_SCHEME).lower()
    if scheme == "argon2":
        return argon2.using(
            type="ID",
            time_cost=2,
            memory_cost=102_400,  # ~100 MiB
            parallelism=8,
        ).hash(password)
    return bcrypt_sha256.using(rounds=rounds or settings.BCRYPT_ROUNDS).hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a password against a stored bcrypt_sha256, bcrypt or argon2 hash."""
    scheme = _scheme_of(password_hash or "")
    try:
        if scheme == "argon2":
            return argon2.verify(password, password_hash)
        if scheme == "bcrypt_sha256":
            return bcrypt_sha256.verify(password, password_hash)
        if scheme == "bcrypt":
            return bcrypt.verify(password, password_hash)
    except (ValueError, TypeError) as e:
        # malformed hash: treat as mismatch, never leak details
        log.warning("Password hash could not be verified: %s", type(e).__name__)
        return False
    return False


# =============================
# 🔑 One-time token hashing
# =============================

def hash_token(token: str) -> str:
    """One-time tokens are only stored hashed (never the raw value)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# =============================
# 🪙 JWT service (access tokens)
# =============================

ALGORITHM = "HS256"


class JWTService:
    def __init__(self, secret: str, algorithm: str = ALGORITHM):
        self.secret = secret
        self.algorithm = algorithm

    def create_token(
        self,
        subject: str | int,
        expires_delta: timedelta,
        claims: Optional[dict[str, Any]] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(subject),
            "iat": int(now.timestamp()),
            "exp": int((now + expires_delta).timestamp()),
        }
        if claims:
            payload.update(claims)
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any]:
        return jwt.decode(token, self.secret, algorithms=[self.algorithm])


# Global instance for the whole app
jwt_service = JWTService(settings.SECRET_KEY)
