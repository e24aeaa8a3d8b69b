"""Tests for the admin account bootstrap script."""

from __future__ import annotations

import sys

from saveit.accounts.repository import UserRepository
from saveit.infrastructure.security import verify_password
from scripts.setup_admin import main, setup_admin


def test_creates_verified_admin():
    user, created = setup_admin("root@example.com", "rootpass", "Root")

    assert created is True
    stored = UserRepository.get_by_email("root@example.com")
    assert stored.is_verified is True
    assert stored.name == "Root"
    assert verify_password("rootpass", stored.password_hash)


def test_updates_existing_user(make_user):
    existing, _ = make_user(email="root@example.com", name="Someone")
    UserRepository.update(existing.id, is_verified=False, otp_code="123456")

    user, created = setup_admin("root@example.com", "newpass1")

    assert created is False
    assert user.id == existing.id
    assert user.is_verified is True
    assert user.otp_code is None
    assert user.name == "Someone"
    assert verify_password("newpass1", user.password_hash)


def test_admin_can_log_in_afterwards(client):
    setup_admin("root@example.com", "rootpass")

    response = client.post("/api/auth/login", json={"email": "root@example.com", "password": "rootpass"})

    assert response.status_code == 200


def test_main_reads_environment(monkeypatch, capsys):
    monkeypatch.setenv("SAVEIT_ADMIN_EMAIL", "Env@Example.com")
    monkeypatch.setenv("SAVEIT_ADMIN_PASSWORD", "envpass1")
    monkeypatch.setattr(sys, "argv", ["saveit-setup-admin"])

    assert main() == 0
    assert "Created admin user env@example.com" in capsys.readouterr().out
    assert UserRepository.get_by_email("env@example.com") is not None


def test_main_rejects_short_password(monkeypatch, capsys):
    monkeypatch.setattr(
        sys, "argv", ["saveit-setup-admin", "--email", "a@example.com", "--password", "123"]
    )

    assert main() == 1
    assert "at least" in capsys.readouterr().out
    assert UserRepository.get_by_email("a@example.com") is None
