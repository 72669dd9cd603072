"""Rendering of reminder buckets as a chat message."""

from __future__ import annotations

from typing import Iterable, Optional

from library_jp_reminder.buckets import ReminderBucket


def format_bucket(bucket: ReminderBucket) -> str:
    """Header with the item count, then one line per title."""
    lines = [f"【{bucket.label}】{bucket.count}冊"]
    lines.extend(f"・{title}" for title in bucket.titles)
    return "\n".join(lines)


def compose_reminder(buckets: Iterable[ReminderBucket]) -> Optional[str]:
    """
    Build the reminder text for the non-empty buckets.

    Returns:
        The message, or None when there is nothing to report.
    """
    sections = [format_bucket(bucket) for bucket in buckets if bucket]
    if not sections:
        return None
    return "\n\n".join(sections)
