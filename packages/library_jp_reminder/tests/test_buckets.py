"""Tests for sorting loans into reminder buckets.

These are unit tests that don't require network access or credentials.
"""

from datetime import date, datetime, timedelta

import pytest

from library_jp_client import LoanRecord
from library_jp_reminder import DUE_IN_3_DAYS, DUE_SOON, DueSoonPolicy, classify, days_until

TODAY = date(2024, 6, 1)


def loan(title: str, offset: int) -> LoanRecord:
    return LoanRecord(title, TODAY + timedelta(days=offset))


class TestDaysUntil:
    """Tests for days_until."""

    def test_counts_calendar_days(self):
        assert days_until(TODAY, date(2024, 6, 4)) == 3
        assert days_until(TODAY, date(2024, 5, 31)) == -1

    def test_ignores_time_of_day(self):
        late_evening = datetime(2024, 6, 1, 23, 59)
        assert days_until(late_evening, date(2024, 6, 2)) == 1

    def test_crosses_month_boundary(self):
        assert days_until(date(2024, 2, 28), date(2024, 3, 2)) == 3


class TestClassify:
    """Tests for classify."""

    def test_bucket_order_and_keys(self):
        buckets = classify(TODAY, [])
        assert [bucket.key for bucket in buckets] == [DUE_IN_3_DAYS, DUE_SOON]
        assert not any(buckets)

    @pytest.mark.parametrize(
        "offset, expected",
        [
            (3, DUE_IN_3_DAYS),
            (1, DUE_SOON),
            (0, DUE_SOON),
            (2, None),
            (4, None),
            (-1, None),
        ],
    )
    def test_offsets(self, offset, expected):
        in_three_days, soon = classify(TODAY, [loan("Book", offset)])
        placed = [bucket.key for bucket in (in_three_days, soon) if bucket]
        assert placed == ([expected] if expected else [])

    def test_page_order_is_kept(self):
        records = [loan("Third", 3), loan("Soon 1", 1), loan("Also third", 3), loan("Soon 0", 0)]
        in_three_days, soon = classify(TODAY, records)
        assert in_three_days.titles == ["Third", "Also third"]
        assert soon.titles == ["Soon 1", "Soon 0"]
        assert in_three_days.count == 2

    def test_duplicate_titles_are_kept(self):
        in_three_days, _ = classify(TODAY, [loan("Same", 3), loan("Same", 3)])
        assert in_three_days.titles == ["Same", "Same"]

    def test_excluding_today(self):
        policy = DueSoonPolicy(include_today=False)
        _, soon = classify(TODAY, [loan("Today", 0), loan("Tomorrow", 1)], policy)
        assert soon.titles == ["Tomorrow"]

    def test_policy_days(self):
        assert DueSoonPolicy().days == {0, 1}
        assert DueSoonPolicy(include_today=False).days == {1}
