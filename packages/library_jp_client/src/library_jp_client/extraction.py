"""Extraction of loan records from the listing page.

The listing markup is not stable, so extraction runs a cascade of
strategies: an exact pattern match over the raw HTML first, then table
heuristics of decreasing precision. The first strategy that produces
records wins. Running out of strategies is not an error; the patron may
simply have nothing checked out.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from datetime import date
from typing import Callable, Optional, Protocol, Sequence

from bs4 import BeautifulSoup, Tag

from library_jp_client.dates import DATE_PATTERN, find_date, is_date_shaped, is_only_date
from library_jp_client.models import LoanRecord
from library_jp_client.portal import make_soup

logger = logging.getLogger(__name__)

# <strong class="title"><a href="...">Title</a></strong>
TITLE_FRAGMENT = re.compile(
    r'<strong\s+class="title"\s*>\s*(?:<a\b[^>]*>)?(?P<title>.*?)(?:</a>)?\s*</strong>',
    re.IGNORECASE | re.DOTALL,
)
# <td class="due">2024/06/04</td>
DUE_FRAGMENT = re.compile(
    r'<td\s+class="due"\s*>\s*(?P<date>' + DATE_PATTERN.pattern + r")",
    re.IGNORECASE,
)

DUE_HEADER_KEYWORDS = ["返却期限", "返却予定", "返却日", "貸出期限", "due"]

# Cells at or after this index are preferred when guessing the due date column;
# earlier date cells are usually the loan date.
DUE_DATE_MIN_INDEX = 3

EMPHASIS_TAGS = ["strong", "b", "em"]

_TAG = re.compile(r"<[^>]+>")


def clean_text(text: str) -> str:
    """Collapse whitespace the way BeautifulSoup's stripped text does."""
    return " ".join(text.split())


class ExtractionStrategy(Protocol):
    """One way of pulling loan records out of listing markup."""

    name: str

    def extract(self, html: str) -> Optional[list[LoanRecord]]:
        """Return records, or None when this strategy finds nothing usable."""
        ...


class PatternStrategy:
    """Match the known title and due-date fragments directly in the HTML.

    Titles and dates are paired by position, so the result is only trusted
    when both counts agree.
    """

    name = "pattern"

    def extract(self, html: str) -> Optional[list[LoanRecord]]:
        titles = [
            clean_text(html_lib.unescape(_TAG.sub("", m.group("title"))))
            for m in TITLE_FRAGMENT.finditer(html)
        ]
        dates = [find_date(m.group("date")) for m in DUE_FRAGMENT.finditer(html)]

        if not titles or not dates:
            return None

        if len(titles) != len(dates):
            logger.debug(
                "Pattern strategy count mismatch: %d title(s), %d date(s)",
                len(titles),
                len(dates),
            )
            return None

        records = []
        for title, due_date in zip(titles, dates):
            if not title or due_date is None:
                logger.debug("Dropping partial pattern match: %r / %r", title, due_date)
                continue
            records.append(LoanRecord(title=title, due_date=due_date))

        return records or None


TableLocator = Callable[[BeautifulSoup], Optional[Tag]]


def locate_list_class_table(soup: BeautifulSoup) -> Optional[Tag]:
    """Table whose class name contains "list"."""
    for table in soup.find_all("table"):
        classes = " ".join(table.get("class", [])).lower()
        if "list" in classes:
            return table
    return None


def locate_due_header_table(soup: BeautifulSoup) -> Optional[Tag]:
    """Enclosing table of a header cell that names the due date."""
    for header in soup.find_all("th"):
        if _is_due_header(header.get_text(strip=True)):
            table = header.find_parent("table")
            if table is not None:
                return table
    return None


def locate_date_cell_table(soup: BeautifulSoup) -> Optional[Tag]:
    """Enclosing table of any cell whose text contains a date."""
    for cell in soup.find_all("td"):
        if is_date_shaped(cell.get_text(strip=True)):
            table = cell.find_parent("table")
            if table is not None:
                return table
    return None


def locate_large_table(soup: BeautifulSoup) -> Optional[Tag]:
    """First table with more than five data cells."""
    for table in soup.find_all("table"):
        if len(table.find_all("td")) > 5:
            return table
    return None


DEFAULT_LOCATORS: list[tuple[str, TableLocator]] = [
    ("list-class", locate_list_class_table),
    ("due-header", locate_due_header_table),
    ("date-cell", locate_date_cell_table),
    ("large-table", locate_large_table),
]


def _is_due_header(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in DUE_HEADER_KEYWORDS)


def _row_cells(row: Tag, tags: list[str]) -> list[Tag]:
    # Only cells that belong to this row, not to a table nested inside it
    return row.find_all(tags, recursive=False)


def _rows(table: Tag) -> list[Tag]:
    rows = []
    for row in table.find_all("tr"):
        if row.find_parent("table") is table:
            rows.append(row)
    return rows


def find_due_column(table: Tag) -> int:
    """Index of the header cell naming the return due date, or -1."""
    for row in _rows(table):
        # Header rows hold only <th> cells
        if row.find("td", recursive=False) or not row.find("th", recursive=False):
            continue
        for i, cell in enumerate(_row_cells(row, ["th"])):
            if _is_due_header(cell.get_text(strip=True)):
                return i
    return -1


def _looks_like_title(text: str) -> bool:
    return bool(text) and not is_only_date(text) and not text.isdigit()


def pick_title(cells: list[Tag]) -> Optional[str]:
    """
    Choose the title cell.

    Priority: a cell with emphasized text, then a cell with a link, then the
    cell with the longest text. Text that is only a date or only digits is
    never a title, so a bold due date or a linked item number is skipped.
    """
    for cell in cells:
        emphasis = cell.find(EMPHASIS_TAGS)
        if emphasis is not None:
            text = clean_text(emphasis.get_text(" ", strip=True))
            if _looks_like_title(text):
                return text

    for cell in cells:
        link = cell.find("a")
        if link is not None:
            text = clean_text(link.get_text(" ", strip=True))
            if _looks_like_title(text):
                return text

    candidates = [
        clean_text(cell.get_text(" ", strip=True))
        for cell in cells
    ]
    candidates = [text for text in candidates if _looks_like_title(text)]
    if not candidates:
        return None
    return max(candidates, key=len)


def pick_due_date(cells: list[Tag], due_column: int) -> Optional[date]:
    """
    Choose the due date for a row.

    Uses the header-identified column when there is one. Otherwise takes the
    first date at or after the fourth cell, falling back to the last date in
    the row.
    """
    if 0 <= due_column < len(cells):
        return find_date(cells[due_column].get_text(" ", strip=True))

    found = []
    for i, cell in enumerate(cells):
        parsed = find_date(cell.get_text(" ", strip=True))
        if parsed is not None:
            found.append((i, parsed))

    if not found:
        return None

    for i, parsed in found:
        if i >= DUE_DATE_MIN_INDEX:
            return parsed
    return found[-1][1]


def extract_rows(table: Tag) -> list[LoanRecord]:
    """Pull (title, due date) pairs out of each data row of a table."""
    due_column = find_due_column(table)
    records = []

    for row in _rows(table):
        data_cells = _row_cells(row, ["td"])
        if row.find("th", recursive=False) and not data_cells:
            continue
        if len(data_cells) < 2:
            continue

        # Header-derived indices count every cell in the row, th included
        cells = _row_cells(row, ["td", "th"])

        title = pick_title(data_cells)
        due_date = pick_due_date(cells, due_column)

        if not title or due_date is None:
            logger.debug("Skipping row without a usable title or due date: %r", title)
            continue

        records.append(LoanRecord(title=title, due_date=due_date))

    return records


class TableStrategy:
    """Locate a loans table with one heuristic and read its rows."""

    def __init__(self, name: str, locator: TableLocator):
        self.name = name
        self._locator = locator

    def extract(self, html: str) -> Optional[list[LoanRecord]]:
        soup = make_soup(html)
        table = self._locator(soup)
        if table is None:
            return None
        return extract_rows(table) or None


def default_strategies() -> list[ExtractionStrategy]:
    strategies: list[ExtractionStrategy] = [PatternStrategy()]
    strategies.extend(TableStrategy(f"table:{name}", locator) for name, locator in DEFAULT_LOCATORS)
    return strategies


class TabularExtractor:
    """
    Runs the extraction cascade over listing markup.

    Example:
        >>> records = TabularExtractor().extract(listing_html)
        >>> for record in records:
        ...     print(record.title, record.due_date)
    """

    def __init__(self, strategies: Optional[Sequence[ExtractionStrategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def extract(self, html: str) -> list[LoanRecord]:
        """
        Extract loan records in page order.

        Returns:
            Records from the first strategy that produced any, or an empty list.
        """
        if not html or not html.strip():
            return []

        for strategy in self.strategies:
            records = strategy.extract(html)
            if records:
                logger.info("Extracted %d loan(s) with the %s strategy", len(records), strategy.name)
                return records
            logger.debug("Strategy %s found nothing", strategy.name)

        logger.info("No loans found on the listing page")
        return []
