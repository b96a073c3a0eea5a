# authgate/api/deps.py
from __future__ import annotations

from functools import lru_cache

from authgate.core.config import AuthConfig
from authgate.db.database import SessionLocal
from authgate.services.auth_service import AuthWorkflow
from authgate.services.credential_exchange import PasswordCredentialExchange
from authgate.services.email_service import get_notifier


@lru_cache(maxsize=1)
def get_workflow() -> AuthWorkflow:
    """One workflow per process, wired from the global settings."""
    return AuthWorkflow(
        session_factory=SessionLocal,
        notifier=get_notifier(),
        exchange=PasswordCredentialExchange(SessionLocal),
        config=AuthConfig.from_settings(),
    )
