"""Notification kinds handed to the notifier."""

from enum import Enum


class NotificationKind(str, Enum):
    """Kinds of account notifications.

    VERIFICATION_EMAIL and PASSWORD_RESET_EMAIL carry a ``link`` in their
    payload; WELCOME_EMAIL carries none.
    """

    VERIFICATION_EMAIL = "verification_email"
    WELCOME_EMAIL = "welcome_email"
    PASSWORD_RESET_EMAIL = "password_reset_email"
