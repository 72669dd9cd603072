"""One reminder run: garbage schedule plus library due dates, sent as one message."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from library_jp_client import LibraryClient, LibraryClientError, LoanRecord

from library_jp_reminder.buckets import DueSoonPolicy, ReminderBucket, classify
from library_jp_reminder.composer import compose_reminder
from library_jp_reminder.config import ReminderSettings
from library_jp_reminder.garbage import garbage_message
from library_jp_reminder.notifier import WebhookNotifier
from library_jp_reminder.secret_store import SecretStore, load_secrets

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "図書館の貸出情報を取得できませんでした"
NOTHING_DUE_MESSAGE = "返却期限が近い資料はありません。"


@dataclass
class RunReport:
    """What a run computed and, unless it was a dry run, sent."""

    today: date
    target_date: date
    loans: list[LoanRecord] = field(default_factory=list)
    buckets: list[ReminderBucket] = field(default_factory=list)
    garbage_message: str = ""
    library_message: str = ""
    message: str = ""
    loan_fetch_failed: bool = False
    sent: bool = False


async def fetch_loans(
    settings: ReminderSettings,
    identifier: str,
    password: str,
    client_factory: Callable[..., LibraryClient] = LibraryClient,
) -> list[LoanRecord]:
    """Login and read the current loans using a fresh client."""
    async with client_factory(
        identifier,
        password,
        base_url=settings.base_url,
        max_attempts=settings.login_max_attempts,
        retry_delay=settings.login_retry_delay,
    ) as client:
        return await client.fetch_loans()


async def run_reminders(
    settings: ReminderSettings,
    *,
    store: SecretStore,
    now: Optional[datetime] = None,
    send: bool = True,
    client_factory: Callable[..., LibraryClient] = LibraryClient,
    notifier_factory: Callable[[str], WebhookNotifier] = WebhookNotifier,
) -> RunReport:
    """
    Build the daily reminder and post it to the webhook.

    A failure to read the library is reported inside the message rather than
    aborting the run, so the garbage reminder still goes out.

    Args:
        settings: Run configuration.
        store: Where the credentials and webhook URL are read from.
        now: Override for the current time (naive values are taken as local to
            the configured time zone).
        send: Post the message; False only builds it.

    Raises:
        SecretUnavailableError: If a secret cannot be read.
        NotificationError: If the message could not be delivered.
    """
    tz = settings.tzinfo
    if now is None:
        now = datetime.now(tz)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=tz)
    else:
        now = now.astimezone(tz)

    today = now.date()
    tomorrow = today + timedelta(days=1)
    logger.info("Reminder run for %s (target date %s)", today, tomorrow)

    secrets = load_secrets(store, settings)
    logger.info("Secrets fetched successfully.")

    report = RunReport(today=today, target_date=tomorrow)
    report.garbage_message = garbage_message(tomorrow)
    logger.info(report.garbage_message)

    try:
        report.loans = await fetch_loans(
            settings,
            secrets.library_id,
            secrets.library_password,
            client_factory=client_factory,
        )
    except LibraryClientError as e:
        logger.error("Could not read loans: %s", e)
        report.loan_fetch_failed = True
        report.library_message = FETCH_FAILED_MESSAGE
    else:
        logger.info("Found %d loan(s)", len(report.loans))
        policy = DueSoonPolicy(include_today=settings.due_soon_includes_today)
        report.buckets = classify(today, report.loans, policy)
        report.library_message = compose_reminder(report.buckets) or NOTHING_DUE_MESSAGE

    report.message = f"{report.garbage_message}\n\n{report.library_message}"

    if send:
        notifier = notifier_factory(secrets.webhook_url)
        await notifier.send(report.message)
        report.sent = True
        logger.info("Reminder sent.")

    return report
