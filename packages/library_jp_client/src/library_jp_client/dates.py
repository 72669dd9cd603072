"""Date parsing for dates as the portal renders them."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

# 2024/06/04, 2024-6-4, 2024.06.04, 2024年6月4日 (optionally followed by a weekday like "(火)")
DATE_PATTERN = re.compile(
    r"(?P<year>\d{4})\s*[/\-.年]\s*(?P<month>\d{1,2})\s*[/\-.月]\s*(?P<day>\d{1,2})\s*日?"
)


def find_date(text: Optional[str]) -> Optional[date]:
    """Return the first valid calendar date found anywhere in ``text``.

    Handles formats like:
    - "2024/06/04"
    - "2024年6月4日(火)"
    - "返却期限日: 2024-06-04"
    """
    if not text:
        return None

    for match in DATE_PATTERN.finditer(text):
        try:
            return date(int(match["year"]), int(match["month"]), int(match["day"]))
        except ValueError:
            continue

    return None


def is_date_shaped(text: Optional[str]) -> bool:
    """Check whether the text contains something that parses as a date."""
    return find_date(text) is not None


def is_only_date(text: Optional[str]) -> bool:
    """Check whether the text is a date and nothing more (weekday suffixes allowed)."""
    if not text:
        return False
    stripped = DATE_PATTERN.sub("", text, count=1)
    stripped = re.sub(r"[()（）\s月火水木金土日]", "", stripped)
    return stripped == "" and is_date_shaped(text)
