"""Waste collection calendar for the patron's neighbourhood."""

from __future__ import annotations

import math
from datetime import date

BURNABLE = "燃えるゴミ"
PET_BOTTLES = "ペットボトル"
PLASTIC_CONTAINERS = "プラスチック製容器包装"
NON_BURNABLE = "燃えないゴミ"
RECYCLABLES = "カン・ビン・小型金属・古紙・古布"

# Tuesday collections by week of the month
TUESDAY_SCHEDULE = {
    1: [PET_BOTTLES, PLASTIC_CONTAINERS],
    2: [NON_BURNABLE],
    3: [PLASTIC_CONTAINERS],
    4: [RECYCLABLES],
}


def _sunday_based_weekday(day: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return (day.weekday() + 1) % 7


def week_of_month(day: date) -> int:
    """Calendar row of the day in a Sunday-first month view (1-based)."""
    first_weekday = _sunday_based_weekday(day.replace(day=1))
    return math.ceil((day.day + first_weekday) / 7)


def garbage_categories(day: date) -> list[str]:
    """Waste categories collected on ``day``; empty when there is no collection."""
    weekday = _sunday_based_weekday(day)
    categories = []

    # Wednesday and Saturday
    if weekday in (3, 6):
        categories.append(BURNABLE)

    if weekday == 2:
        categories.extend(TUESDAY_SCHEDULE.get(week_of_month(day), []))

    return categories


def garbage_message(day: date) -> str:
    """One-line summary for the given collection day."""
    categories = garbage_categories(day)
    prefix = f"明日のゴミ出し ({day.isoformat()}): "
    if categories:
        return prefix + "、".join(categories)
    return prefix + "収集はありません。"
