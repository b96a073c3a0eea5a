"""
tests/conftest.py -- Shared fixtures for the authgate test suite.

Provides:
  - engine / session_factory: a fresh SQLite file DB per test (tmp_path).
    A file DB rather than :memory: so concurrent sessions get their own
    connections, as they would against a real server.
  - notifier: RecordingNotifier that keeps every token it was asked to send.
  - workflow: AuthWorkflow wired to the above with a cheap bcrypt cost and
    no post-register delay.

Settings are read from the environment at import time, so the env vars
below must be set before any authgate import.
"""

from __future__ import annotations

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("REGISTER_DELAY_MS", "0")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from authgate.core.config import AuthConfig
from authgate.db.database import init_models
from authgate.services.auth_service import AuthWorkflow
from authgate.services.credential_exchange import PasswordCredentialExchange

PASSWORD = "Secret1!"


class RecordingNotifier:
    """Notification sink double: records (email, token) pairs per kind."""

    def __init__(self) -> None:
        self.verification: list[tuple[str, str]] = []
        self.reset: list[tuple[str, str]] = []

    async def send_verification_email(self, email: str, token: str) -> None:
        self.verification.append((email, token))

    async def send_reset_password_email(self, email: str, token: str) -> None:
        self.reset.append((email, token))

    @property
    def last_verification_token(self) -> str:
        return self.verification[-1][1]

    @property
    def last_reset_token(self) -> str:
        return self.reset[-1][1]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}")
    await init_models(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def config() -> AuthConfig:
    return AuthConfig(bcrypt_rounds=4)


@pytest.fixture
def workflow(session_factory, notifier, config) -> AuthWorkflow:
    return AuthWorkflow(
        session_factory=session_factory,
        notifier=notifier,
        exchange=PasswordCredentialExchange(session_factory),
        config=config,
    )


@pytest_asyncio.fixture
async def verified_user(workflow, notifier) -> str:
    """Register a@x.com and verify it; returns the email."""
    email = "a@x.com"
    assert (await workflow.register(email, "A", PASSWORD)).status == 200
    assert (await workflow.verify_token(notifier.last_verification_token)).status == 200
    return email
