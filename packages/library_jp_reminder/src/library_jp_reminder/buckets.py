"""Classification of loans into reminder buckets by days until due."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Union

from library_jp_client import LoanRecord

DUE_IN_3_DAYS = "due-in-3-days"
DUE_SOON = "due-soon"

BUCKET_LABELS = {
    DUE_IN_3_DAYS: "返却期限まであと3日",
    DUE_SOON: "返却期限が今日・明日",
}

DateLike = Union[date, datetime]


@dataclass(frozen=True)
class DueSoonPolicy:
    """Which day counts belong in the due-soon bucket.

    The default includes items due today. Set ``include_today=False`` to only
    remind about items due tomorrow.
    """

    include_today: bool = True

    @property
    def days(self) -> frozenset[int]:
        return frozenset({0, 1}) if self.include_today else frozenset({1})


@dataclass
class ReminderBucket:
    """Titles sharing the same urgency."""

    key: str
    label: str
    titles: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.titles)

    def __bool__(self) -> bool:
        return bool(self.titles)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until(reference: DateLike, due: DateLike) -> int:
    """Calendar days from ``reference`` to ``due``, ignoring time of day."""
    return (_as_date(due) - _as_date(reference)).days


def classify(
    reference: DateLike,
    records: Iterable[LoanRecord],
    policy: DueSoonPolicy = DueSoonPolicy(),
) -> list[ReminderBucket]:
    """
    Sort loans into reminder buckets.

    Args:
        reference: The "today" anchor.
        records: Loans in page order.
        policy: Which day counts make an item due soon.

    Returns:
        The due-in-3-days and due-soon buckets, in that order. Items due in the
        past, in two days or more than three days out are in neither.
    """
    in_three_days = ReminderBucket(DUE_IN_3_DAYS, BUCKET_LABELS[DUE_IN_3_DAYS])
    soon = ReminderBucket(DUE_SOON, BUCKET_LABELS[DUE_SOON])

    for record in records:
        days = days_until(reference, record.due_date)
        if days == 3:
            in_three_days.titles.append(record.title)
        elif days in policy.days:
            soon.titles.append(record.title)

    return [in_three_days, soon]
