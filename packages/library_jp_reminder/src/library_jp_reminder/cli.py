"""Command-line interface for the daily reminder."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date, datetime, time
from typing import Optional, Sequence

from rich.console import Console
from tabulate import tabulate

from library_jp_reminder.buckets import days_until
from library_jp_reminder.config import ReminderSettings
from library_jp_reminder.errors import NotificationError, SecretUnavailableError
from library_jp_reminder.logging_config import configure_logging
from library_jp_reminder.runner import RunReport, run_reminders
from library_jp_reminder.secret_store import EnvSecretStore

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="library-jp-remind",
        description="Send tomorrow's garbage schedule and upcoming library due dates to a chat webhook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Secrets are read from environment variables named after the secret
  export LIBRARY_ID=12345678
  export LIBRARY_PASSWORD=your_password
  export DISCORD_WEBHOOK_URL=https://discord.com/api/webhooks/...
  library-jp-remind

  # Build the message for a given day without sending it
  library-jp-remind --date 2024-06-01 --dry-run --show-loans
""",
    )
    parser.add_argument(
        "--date",
        "-d",
        type=_parse_date,
        help="Treat this day (YYYY-MM-DD) as today",
    )
    parser.add_argument(
        "--dry-run",
        "-n",
        action="store_true",
        help="Print the message instead of sending it",
    )
    parser.add_argument(
        "--show-loans",
        "-s",
        action="store_true",
        help="Print the extracted loans with days remaining",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: LOG_LEVEL env var or INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )
    return parser


def loans_table(report: RunReport) -> str:
    table_data = []
    for loan in report.loans:
        title = loan.title
        if len(title) > 58:
            title = title[:55] + "..."
        table_data.append([title, loan.due_date.isoformat(), str(days_until(report.today, loan.due_date))])

    headers = ["Title", "Due Date", "Days Remaining"]
    return tabulate(table_data, headers=headers, tablefmt="github")


def print_report(report: RunReport, show_loans: bool) -> None:
    if show_loans:
        console.print("## Current Loans", markup=False)
        if report.loan_fetch_failed:
            console.print("Loans could not be read.", markup=False)
        elif not report.loans:
            console.print("No items currently checked out.", markup=False)
        else:
            console.print(loans_table(report), markup=False, highlight=False, soft_wrap=True)
        console.print()

    if not report.sent:
        console.print(report.message, markup=False, highlight=False, soft_wrap=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    try:
        settings = ReminderSettings.from_env()
    except ValueError as e:
        err_console.print(f"Error: {e}", markup=False)
        return 1

    configure_logging(args.log_level or settings.log_level, args.log_file)

    now = None
    if args.date:
        # Morning of the given day, in the configured time zone
        now = datetime.combine(args.date, time(hour=9), tzinfo=settings.tzinfo)

    try:
        report = asyncio.run(
            run_reminders(
                settings,
                store=EnvSecretStore(),
                now=now,
                send=not args.dry_run,
            )
        )
    except SecretUnavailableError as e:
        err_console.print(f"Error: {e}", markup=False)
        return 1
    except NotificationError as e:
        logger.error("Reminder was not delivered: %s", e)
        err_console.print(f"Error: {e}", markup=False)
        return 1

    print_report(report, args.show_loans)
    return 0


if __name__ == "__main__":
    sys.exit(main())
