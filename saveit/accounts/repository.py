"""
User and LoginConfirmation repositories - CRUD over the users and
login_confirmations tables.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from saveit.accounts.models import LoginConfirmation, OTPPurpose, User
from saveit.config import OTP_TTL_MINUTES
from saveit.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from saveit.observability.logging import get_logger
from saveit.storage.models import encode_changes, to_iso, update_sql, utc_now
from saveit.utils.redaction import mask_email

logger = get_logger(__name__)


class UserRepository:
    """
    Repository for User rows.

    Emails are stored lower-cased and are unique.
    """

    @staticmethod
    @retry_on_db_lock()
    def create(user: User) -> User:
        """
        Insert a new user.

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        with db_transaction() as conn:
            conn.execute(User.insert_sql("users"), user.to_db_dict())

        logger.info("Created user %s (%s)", user.id, mask_email(user.email))
        return user

    @staticmethod
    def get_by_id(user_id: str) -> User | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return User.from_db_row(row) if row else None

    @staticmethod
    def get_by_email(email: str) -> User | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
        return User.from_db_row(row) if row else None

    @staticmethod
    @retry_on_db_lock()
    def update(user_id: str, **changes) -> User | None:
        """
        Update selected columns of a user.

        Returns:
            The updated User, or None if it doesn't exist
        """
        changes["updated_at"] = utc_now()
        encoded = encode_changes(User, changes)
        with db_transaction() as conn:
            cursor = conn.execute(
                update_sql("users", list(encoded), scope="id = :id"),
                {**encoded, "id": user_id},
            )
            if cursor.rowcount == 0:
                return None
        return UserRepository.get_by_id(user_id)

    @staticmethod
    def set_otp(user_id: str, code: str, purpose: OTPPurpose) -> datetime:
        """Store a fresh OTP; returns its expiry."""
        expires_at = utc_now() + timedelta(minutes=OTP_TTL_MINUTES)
        UserRepository.update(
            user_id, otp_code=code, otp_expires_at=expires_at, otp_purpose=purpose.value
        )
        return expires_at

    @staticmethod
    def clear_otp(user_id: str) -> None:
        UserRepository.update(user_id, otp_code=None, otp_expires_at=None, otp_purpose=None)

    @staticmethod
    def list_all() -> list[User]:
        with get_db_connection() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY created_at DESC").fetchall()
        return [User.from_db_row(r) for r in rows]

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return cursor.rowcount > 0


class LoginConfirmationRepository:
    """Repository for pending login confirmations."""

    @staticmethod
    @retry_on_db_lock()
    def create(confirmation: LoginConfirmation) -> LoginConfirmation:
        with db_transaction() as conn:
            conn.execute(
                LoginConfirmation.insert_sql("login_confirmations"), confirmation.to_db_dict()
            )
        logger.info("Created login confirmation %s for user %s", confirmation.id, confirmation.user_id)
        return confirmation

    @staticmethod
    def get_by_confirm_token(confirm_token: str) -> LoginConfirmation | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM login_confirmations WHERE confirm_token = ?", (confirm_token,)
            ).fetchone()
        return LoginConfirmation.from_db_row(row) if row else None

    @staticmethod
    def get_by_temp_token(temp_token: str) -> LoginConfirmation | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM login_confirmations WHERE temp_token = ?", (temp_token,)
            ).fetchone()
        return LoginConfirmation.from_db_row(row) if row else None

    @staticmethod
    @retry_on_db_lock()
    def mark_confirmed(confirmation_id: str) -> None:
        with db_transaction() as conn:
            conn.execute(
                "UPDATE login_confirmations SET confirmed = 1 WHERE id = ?", (confirmation_id,)
            )

    @staticmethod
    @retry_on_db_lock()
    def consume(confirmation_id: str) -> bool:
        """
        Delete a confirmed record. Returns False if someone else already did,
        so a confirmation can be exchanged only once.
        """
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM login_confirmations WHERE id = ? AND confirmed = 1",
                (confirmation_id,),
            )
        return cursor.rowcount == 1

    @staticmethod
    @retry_on_db_lock()
    def purge_expired(now: datetime | None = None) -> int:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM login_confirmations WHERE expires_at < ?",
                (to_iso(now or utc_now()),),
            )
        if cursor.rowcount:
            logger.info("Purged %d expired login confirmations", cursor.rowcount)
        return cursor.rowcount
