"""
SaveIt.AI accounts - users, one-time codes and login confirmation.
"""

from saveit.accounts.models import LoginConfirmation, OTPPurpose, User
from saveit.accounts.repository import LoginConfirmationRepository, UserRepository

__all__ = [
    "LoginConfirmation",
    "LoginConfirmationRepository",
    "OTPPurpose",
    "User",
    "UserRepository",
]
