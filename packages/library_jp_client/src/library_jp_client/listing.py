"""Retrieval of the loan listing page."""

from __future__ import annotations

import logging
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from library_jp_client.errors import ListingTimeoutError, ListingUnavailableError, SessionExpiredError
from library_jp_client.models import PortalSession
from library_jp_client.portal import (
    LISTING_LINK_TEXT,
    find_login_form,
    is_timeout_page,
    make_soup,
)

logger = logging.getLogger(__name__)

LISTING_TIMEOUT = 20.0
MAX_HOPS = 2

_REFRESH_URL = re.compile(r"url\s*=\s*['\"]?([^'\";]+)", re.IGNORECASE)


class ListingFetcher:
    """Fetches the listing page for an authenticated session.

    Follows in-page navigation (meta refresh, or a link to the full lending
    list when the page holds no table) and refuses to hand back the portal's
    timeout page or a bounce to the login form.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        timeout: float = LISTING_TIMEOUT,
        max_hops: int = MAX_HOPS,
    ):
        self._client = http_client
        self.timeout = timeout
        self.max_hops = max_hops

    async def fetch(self, session: PortalSession, listing_url: str) -> str:
        """
        Get the raw listing markup.

        Args:
            session: Authenticated session.
            listing_url: Discovered (or conventional) listing URL.

        Returns:
            The listing page HTML.

        Raises:
            SessionExpiredError: If the portal sent us back to the login form.
            ListingTimeoutError: If the request times out.
            ListingUnavailableError: On timeout pages or HTTP errors.
        """
        if not session.is_usable:
            raise SessionExpiredError("no session cookies")

        self._seed_cookies(session)

        url = listing_url
        visited: set[str] = set()

        for hop in range(self.max_hops + 1):
            visited.add(url)
            html, final_url = await self._get(session, url)
            soup = make_soup(html)

            if find_login_form(soup) is not None:
                raise SessionExpiredError()

            if is_timeout_page(soup):
                raise ListingUnavailableError("portal timeout")

            next_url = self._next_hop(soup, final_url)
            if next_url is None or next_url in visited or hop == self.max_hops:
                return html

            logger.debug("Following in-page navigation to %s", next_url)
            url = next_url

        return html

    async def _get(self, session: PortalSession, url: str) -> tuple[str, str]:
        try:
            response = await self._client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise ListingTimeoutError() from e
        except httpx.HTTPError as e:
            raise ListingUnavailableError(f"request failed: {e}") from e

        if response.status_code >= 400:
            raise ListingUnavailableError(f"HTTP {response.status_code}")

        session.absorb(response)
        return response.text, str(response.url)

    def _seed_cookies(self, session: PortalSession) -> None:
        """Make sure the HTTP client carries the session's cookies."""
        known = {cookie.name for cookie in self._client.cookies.jar}
        host = urlparse(session.base_url).hostname or ""
        for name, value in session.cookies.items():
            if name not in known:
                self._client.cookies.set(name, value, domain=host)

    def _next_hop(self, soup: BeautifulSoup, page_url: str) -> Optional[str]:
        """Find navigation that leads to the actual listing, if this page is a stepping stone."""
        refresh = soup.find("meta", attrs={"http-equiv": re.compile("^refresh$", re.IGNORECASE)})
        if refresh and refresh.get("content"):
            match = _REFRESH_URL.search(refresh["content"])
            if match:
                return urljoin(page_url, match.group(1).strip())

        if soup.find("table"):
            return None

        for link in soup.find_all("a", href=True):
            text = link.get_text(strip=True)
            if text and any(keyword in text for keyword in LISTING_LINK_TEXT):
                target = urljoin(page_url, link["href"])
                if target != page_url:
                    return target

        return None
