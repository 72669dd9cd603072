"""Client for reading a patron's loans from the city library portal."""

from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from library_jp_client.credentials import validate_credentials
from library_jp_client.errors import LibraryClientError
from library_jp_client.extraction import TabularExtractor
from library_jp_client.listing import ListingFetcher
from library_jp_client.models import LoanRecord, NegotiatedSession
from library_jp_client.portal import BROWSER_HEADERS, DEFAULT_BASE_URL, StepTimeouts
from library_jp_client.session import MAX_ATTEMPTS, RETRY_DELAY, SessionNegotiator

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5


class LibraryClient:
    """
    Async client for the library's web OPAC.

    The portal has no API, so this client drives it like a browser: it
    logs in through the portal's login form, keeps the session cookies,
    fetches the lending list page and extracts (title, due date) pairs
    from whatever markup the page currently uses.

    Example:
        >>> async with LibraryClient("12345678", "your_password") as client:
        ...     await client.login()
        ...     for loan in await client.get_loans():
        ...         print(loan)

    Using environment variables:
        >>> import os
        >>> os.environ["LIBRARY_ID"] = "12345678"
        >>> os.environ["LIBRARY_PASSWORD"] = "your_password"
        >>> async with LibraryClient() as client:
        ...     loans = await client.fetch_loans()  # Logs in using environment variables
    """

    def __init__(
        self,
        identifier: Optional[str] = None,
        password: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        timeouts: Optional[StepTimeouts] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        extractor: Optional[TabularExtractor] = None,
    ):
        """
        Initialize the library client.

        Args:
            identifier: The 8-digit patron card number. If not provided, uses LIBRARY_ID env var.
            password: The password. If not provided, uses LIBRARY_PASSWORD env var.
            base_url: Portal root URL. If not provided, uses LIBRARY_BASE_URL env var.
            max_attempts: How many times credentials are submitted before giving up.
            retry_delay: Seconds to wait between login attempts.
            timeouts: Per-step request timeouts.
            transport: Optional httpx transport (used by tests).
            extractor: Optional extractor with a custom strategy cascade.
        """
        self.base_url = (base_url or os.environ.get("LIBRARY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")

        self._identifier = identifier or os.environ.get("LIBRARY_ID", "")
        self._password = password or os.environ.get("LIBRARY_PASSWORD", "")

        self.timeouts = timeouts or StepTimeouts()
        self._negotiated: Optional[NegotiatedSession] = None

        # Create async HTTP client; each client owns one portal session
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            timeout=httpx.Timeout(self.timeouts.listing),
            headers=BROWSER_HEADERS,
            transport=transport,
        )

        self._negotiator = SessionNegotiator(
            self._client,
            self.base_url,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            timeouts=self.timeouts,
        )
        self._fetcher = ListingFetcher(self._client, timeout=self.timeouts.listing)
        self._extractor = extractor or TabularExtractor()

    async def __aenter__(self) -> "LibraryClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client and forget the session."""
        self._negotiated = None
        await self._client.aclose()

    @property
    def is_logged_in(self) -> bool:
        """Check if the client holds an authenticated session."""
        return self._negotiated is not None

    @property
    def listing_url(self) -> Optional[str]:
        """The loan listing URL discovered during login."""
        return self._negotiated.listing_url if self._negotiated else None

    async def login(
        self,
        identifier: Optional[str] = None,
        password: Optional[str] = None,
    ) -> NegotiatedSession:
        """
        Login to the library portal.

        Credentials are validated locally first; nothing is sent if they
        cannot possibly be right.

        Args:
            identifier: The patron card number. Uses stored value if not provided.
            password: The password. Uses stored value if not provided.

        Returns:
            The negotiated session.

        Raises:
            InvalidCredentialFormatError: If the credentials fail validation.
            LoginError: If login fails.
        """
        credentials = validate_credentials(
            identifier or self._identifier,
            password or self._password,
        )

        self._negotiated = await self._negotiator.negotiate(credentials)
        self._identifier = credentials.identifier
        self._password = credentials.secret
        return self._negotiated

    def _ensure_logged_in(self) -> NegotiatedSession:
        """Ensure the client is logged in, raising an error if not."""
        if self._negotiated is None:
            raise LibraryClientError("Not logged in. Call login() first.")
        return self._negotiated

    async def get_listing_html(self) -> str:
        """
        Get the raw HTML of the loan listing page.

        Raises:
            LibraryClientError: If not logged in.
            ListingUnavailableError: If the portal returned an error or timeout page.
        """
        negotiated = self._ensure_logged_in()
        return await self._fetcher.fetch(negotiated.session, negotiated.listing_url)

    async def get_loans(self) -> list[LoanRecord]:
        """
        Get the list of currently borrowed items.

        Returns:
            LoanRecord objects in page order. Empty if nothing is checked out.

        Raises:
            LibraryClientError: If not logged in.
            SessionExpiredError: If the session has expired.
            ListingUnavailableError: If the listing page could not be retrieved.
        """
        html = await self.get_listing_html()
        return self._extractor.extract(html)

    async def fetch_loans(self) -> list[LoanRecord]:
        """Login (if needed) and return the current loans."""
        if not self.is_logged_in:
            await self.login()
        return await self.get_loans()
