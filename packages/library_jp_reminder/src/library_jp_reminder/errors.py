"""Exceptions raised around the reminder run."""

from __future__ import annotations


class ReminderError(Exception):
    """Base exception for reminder errors."""
    pass


class SecretUnavailableError(ReminderError):
    """Raised when a secret cannot be read from the secret store."""

    def __init__(self, name: str):
        super().__init__(f"Failed to access secret {name}")
        self.name = name


class NotificationError(ReminderError):
    """Raised when the reminder could not be delivered."""
    pass
