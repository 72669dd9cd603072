"""Knowledge about the portal's pages: paths, headers and page markers.

The portal is a WebiLis-style OPAC. None of its markup is documented, so
everything here is matched loosely and in more than one way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from library_jp_client.models import LoginForm

DEFAULT_BASE_URL = "https://www.lib.city.kawachinagano.lg.jp"

ENTRY_PATH = "/winj/opac/top.do"
LOGIN_PATH = "/winj/opac/login.do"
LISTING_PATH = "/winj/opac/lend-list.do"

# Field names used by the login form when the page gives us nothing better
DEFAULT_IDENTIFIER_FIELD = "txt_usercd"
DEFAULT_SECRET_FIELD = "txt_password"

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "ja-JP,ja;q=0.9,en-US;q=0.8,en;q=0.7",
}

# Text that only shows up once the patron is logged in
AUTHENTICATED_MARKERS = ["ログアウト", "利用者メニュー", "Logout", "Log out"]
LOGOUT_HREF_MARKERS = ["logout", "logoff"]

# Link text and hrefs that lead to the list of borrowed items
LISTING_LINK_TEXT = ["貸出状況", "貸出一覧", "借りている資料", "貸出中の資料", "貸出資料", "Loans"]
LISTING_HREF_MARKERS = ["lend-list", "lendlist", "lend_list", "loan"]
LISTING_HREF_EXCLUDES = ["history", "rireki", "hist"]

# Title and body text of the server's timeout / error pages
TIMEOUT_TITLE_MARKERS = ["タイムアウト", "エラー", "Timeout", "Error"]
TIMEOUT_BODY_MARKERS = [
    "セッションがタイムアウト",
    "セッションが切れ",
    "時間切れ",
    "一定時間操作がなかった",
    "システムエラー",
    "session has timed out",
    "session expired",
]


@dataclass
class StepTimeouts:
    """Per-step request timeouts, in seconds."""

    entry: float = 15.0
    form: float = 15.0
    login: float = 25.0
    landing: float = 15.0
    listing: float = 20.0


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def find_login_form(soup: BeautifulSoup) -> Optional[Tag]:
    """Find the form that contains a password input, if any."""
    for form in soup.find_all("form"):
        if form.find("input", {"type": "password"}):
            return form
    return None


def parse_login_form(html: str, page_url: str) -> LoginForm:
    """
    Discover where and how the login form submits.

    The submission target may be relative or point somewhere other than the
    conventional login path, so it is resolved against the form page URL.
    Every hidden input is captured so it can be echoed back verbatim.
    """
    soup = make_soup(html)
    form = find_login_form(soup)

    if form is None:
        return LoginForm(
            action=page_url,
            identifier_field=DEFAULT_IDENTIFIER_FIELD,
            secret_field=DEFAULT_SECRET_FIELD,
            page_url=page_url,
        )

    action = (form.get("action") or "").strip()
    action_url = urljoin(page_url, action) if action else page_url

    hidden_fields: dict[str, str] = {}
    identifier_field = None
    secret_field = None

    for inp in form.find_all("input"):
        name = inp.get("name")
        if not name:
            continue
        input_type = (inp.get("type") or "text").lower()
        if input_type == "hidden":
            hidden_fields[name] = inp.get("value", "")
        elif input_type == "password" and secret_field is None:
            secret_field = name
        elif input_type in ("text", "tel", "number", "email") and identifier_field is None:
            identifier_field = name

    return LoginForm(
        action=action_url,
        identifier_field=identifier_field or DEFAULT_IDENTIFIER_FIELD,
        secret_field=secret_field or DEFAULT_SECRET_FIELD,
        hidden_fields=hidden_fields,
        page_url=page_url,
    )


def has_authenticated_marker(soup: BeautifulSoup) -> bool:
    """Check for content that is only rendered for a logged-in patron."""
    for link in soup.find_all("a", href=True):
        href = link["href"].lower()
        if any(marker in href for marker in LOGOUT_HREF_MARKERS):
            return True

    for button in soup.find_all(["button", "input"]):
        label = button.get_text(strip=True) or button.get("value", "")
        if label and "ログアウト" in label:
            return True

    text = soup.get_text(" ", strip=True)
    return any(marker in text for marker in AUTHENTICATED_MARKERS)


def portal_message(soup: BeautifulSoup) -> str:
    """Extract an error/notice message the portal rendered, if any."""
    for element in soup.find_all(class_=True):
        classes = " ".join(element.get("class", [])).lower()
        if any(word in classes for word in ("error", "alert", "warning", "message")):
            text = element.get_text(" ", strip=True)
            if text:
                return text
    return ""


def find_listing_url(soup: BeautifulSoup, page_url: str, fallback: str) -> str:
    """
    Locate the live link to the loan listing page.

    Matches on link text first, then on the href, and falls back to the
    conventional listing URL when neither is found.
    """
    links = soup.find_all("a", href=True)

    for link in links:
        text = link.get_text(strip=True)
        if text and any(keyword in text for keyword in LISTING_LINK_TEXT):
            return urljoin(page_url, link["href"])

    for link in links:
        href = link["href"].lower()
        if any(excluded in href for excluded in LISTING_HREF_EXCLUDES):
            continue
        if any(marker in href for marker in LISTING_HREF_MARKERS):
            return urljoin(page_url, link["href"])

    return fallback


def is_timeout_page(soup: BeautifulSoup) -> bool:
    """Detect the server-rendered timeout or error page."""
    title = soup.title.get_text(strip=True) if soup.title else ""
    if title and any(marker in title for marker in TIMEOUT_TITLE_MARKERS):
        return True

    body = soup.body.get_text(" ", strip=True) if soup.body else soup.get_text(" ", strip=True)
    return any(marker in body for marker in TIMEOUT_BODY_MARKERS)
