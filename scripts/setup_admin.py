#!/usr/bin/env python3
"""
Create or update the SaveIt.AI admin account.

Reads SAVEIT_ADMIN_EMAIL / SAVEIT_ADMIN_PASSWORD (or the flags below), then
creates a verified user with those credentials, or resets the password of the
existing one and clears any pending OTP.

Usage:
    saveit-setup-admin [--email admin@example.com] [--password ...] [--name Admin]
"""

from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv

from saveit.accounts.models import User
from saveit.accounts.repository import UserRepository
from saveit.config import PASSWORD_MIN_LENGTH
from saveit.infrastructure.database import get_db_path, init_database
from saveit.infrastructure.security import hash_password
from saveit.infrastructure.settings import get_admin_credentials
from saveit.utils.validators import ValidationError, validate_email


def setup_admin(email: str, password: str, name: str = "Admin") -> tuple[User, bool]:
    """
    Ensure a verified admin user exists with these credentials.

    Returns:
        (user, created)
    """
    init_database()
    existing = UserRepository.get_by_email(email)
    if existing:
        user = UserRepository.update(
            existing.id,
            password_hash=hash_password(password),
            is_verified=True,
            otp_code=None,
            otp_expires_at=None,
            otp_purpose=None,
        )
        return user, False

    user = UserRepository.create(
        User(name=name, email=email, password_hash=hash_password(password), is_verified=True)
    )
    return user, True


def main() -> int:
    load_dotenv()
    env_email, env_password = get_admin_credentials()

    parser = argparse.ArgumentParser(description="Create or update the SaveIt.AI admin user")
    parser.add_argument("--email", default=env_email, help="Admin email (default: SAVEIT_ADMIN_EMAIL)")
    parser.add_argument(
        "--password", default=env_password, help="Admin password (default: SAVEIT_ADMIN_PASSWORD)"
    )
    parser.add_argument("--name", default="Admin", help="Display name for a new admin user")
    args = parser.parse_args()

    if not args.email or not args.password:
        print("Admin email and password are required (set SAVEIT_ADMIN_EMAIL/SAVEIT_ADMIN_PASSWORD)")
        return 1
    if len(args.password) < PASSWORD_MIN_LENGTH:
        print(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        return 1
    try:
        email = validate_email(args.email)
    except ValidationError as e:
        print(f"Invalid email: {e}")
        return 1

    user, created = setup_admin(email, args.password, args.name)
    action = "Created" if created else "Updated"
    print(f"{action} admin user {user.email} ({user.id}) in {get_db_path()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
