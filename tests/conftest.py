"""
Pytest configuration for SaveIt.AI tests

Every test gets its own SQLite file, a clean pool and clean in-memory state
(telemetry, LLM budget, board histories). Email delivery is replaced by a
recorder so tests can read the codes and links that would have been sent.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Must be set before saveit.api.app is imported: it initializes the schema
# at import time and decides whether to install the rate limiter
os.environ["SAVEIT_ENV"] = "test"
os.environ.setdefault(
    "SAVEIT_DB_PATH", str(Path(tempfile.mkdtemp(prefix="saveit-tests-")) / "import.db")
)
os.environ["SAVEIT_USE_LLM"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from saveit.accounts.models import User  # noqa: E402
from saveit.accounts.repository import UserRepository  # noqa: E402
from saveit.board.service import reset_histories  # noqa: E402
from saveit.infrastructure.database import init_database, reset_pool  # noqa: E402
from saveit.infrastructure.llm_budget import reset_budget  # noqa: E402
from saveit.infrastructure.security import create_session_token, hash_password  # noqa: E402
from saveit.observability.telemetry import reset_telemetry  # noqa: E402

DEFAULT_PASSWORD = "secret123"


@dataclass
class EmailRecorder:
    """Stands in for EmailService; keeps what would have been sent."""

    otps: list[dict[str, Any]] = field(default_factory=list)
    confirmations: list[dict[str, Any]] = field(default_factory=list)

    def send_otp(self, to_email: str, otp: str, purpose: str, name: str = "") -> bool:
        self.otps.append({"to": to_email, "otp": otp, "purpose": purpose, "name": name})
        return True

    def send_login_confirmation(self, **kwargs: Any) -> bool:
        self.confirmations.append(kwargs)
        return True

    def last_otp(self, email: str) -> str:
        return next(m["otp"] for m in reversed(self.otps) if m["to"] == email)


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the app at a fresh database file for this test"""
    monkeypatch.setenv("SAVEIT_DB_PATH", str(tmp_path / "saveit.db"))
    monkeypatch.setenv("SAVEIT_USE_LLM", "false")
    monkeypatch.delenv("SAVEIT_LOGIN_CONFIRMATION", raising=False)
    monkeypatch.delenv("SAVEIT_ADMIN_EMAIL", raising=False)
    monkeypatch.delenv("SAVEIT_ADMIN_PASSWORD", raising=False)
    monkeypatch.delenv("SAVEIT_CONFIRMATION_EMAIL", raising=False)

    reset_pool()
    init_database()
    reset_telemetry()
    reset_budget()
    reset_histories()

    yield tmp_path / "saveit.db"

    reset_pool()


@pytest.fixture(autouse=True)
def outbox(monkeypatch) -> EmailRecorder:
    recorder = EmailRecorder()
    monkeypatch.setattr("saveit.accounts.service.get_email_service", lambda: recorder)
    monkeypatch.setattr("saveit.accounts.confirmation.get_email_service", lambda: recorder)
    return recorder


@pytest.fixture
def client():
    from saveit.api.app import app

    return TestClient(app)


@pytest.fixture
def make_user():
    """Create a verified user; returns (user, auth headers)."""

    def _make(email: str = "alice@example.com", name: str = "Alice", password: str = DEFAULT_PASSWORD):
        user = UserRepository.create(
            User(name=name, email=email, password_hash=hash_password(password), is_verified=True)
        )
        token = create_session_token(user.id, user.email, user.name)
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_user) -> dict[str, str]:
    return make_user()[1]


@pytest.fixture
def other_headers(make_user) -> dict[str, str]:
    return make_user(email="bob@example.com", name="Bob")[1]
