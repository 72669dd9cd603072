"""
Library JP Reminder - Daily chat reminder for library due dates and garbage collection.

This package provides functionality to:
- Sort loans into "due in three days" and "due soon" buckets
- Compose the reminder message
- Post it to a chat webhook with retry
"""

from library_jp_reminder.buckets import (
    DUE_IN_3_DAYS,
    DUE_SOON,
    DueSoonPolicy,
    ReminderBucket,
    classify,
    days_until,
)
from library_jp_reminder.composer import compose_reminder, format_bucket
from library_jp_reminder.config import ReminderSettings
from library_jp_reminder.errors import NotificationError, ReminderError, SecretUnavailableError
from library_jp_reminder.garbage import garbage_categories, garbage_message
from library_jp_reminder.notifier import WebhookNotifier
from library_jp_reminder.runner import RunReport, run_reminders
from library_jp_reminder.secret_store import EnvSecretStore, ReminderSecrets, SecretStore, load_secrets

__all__ = [
    "DUE_IN_3_DAYS",
    "DUE_SOON",
    "DueSoonPolicy",
    "ReminderBucket",
    "classify",
    "days_until",
    "compose_reminder",
    "format_bucket",
    "ReminderSettings",
    "NotificationError",
    "ReminderError",
    "SecretUnavailableError",
    "garbage_categories",
    "garbage_message",
    "WebhookNotifier",
    "RunReport",
    "run_reminders",
    "EnvSecretStore",
    "ReminderSecrets",
    "SecretStore",
    "load_secrets",
]
