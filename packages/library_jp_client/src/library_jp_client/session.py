"""Login handshake against the library portal."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Mapping, Optional
from urllib.parse import urljoin, urlparse

import httpx

from library_jp_client.errors import LoginError, PortalTimeoutError
from library_jp_client.models import (
    AttemptOutcome,
    Credentials,
    LoginAttempt,
    LoginForm,
    NegotiatedSession,
    PortalSession,
)
from library_jp_client.portal import (
    ENTRY_PATH,
    LISTING_PATH,
    LOGIN_PATH,
    StepTimeouts,
    find_listing_url,
    find_login_form,
    has_authenticated_marker,
    make_soup,
    parse_login_form,
    portal_message,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
RETRY_DELAY = 2.0


class _State(Enum):
    ATTEMPT = "attempt"
    EVALUATE = "evaluate"
    RETRY = "retry"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


def classify_login_response(
    response: Optional[httpx.Response],
    new_cookies: Mapping[str, str],
) -> tuple[AttemptOutcome, str]:
    """
    Decide whether a credential submission logged the patron in.

    Success needs an authenticated-only marker, no login form on the page
    and at least one cookie set by the login exchange itself (the
    response or its redirect chain); cookies held from the entry page do
    not count. A page that still shows the login form is a failure.
    Anything else is ambiguous.

    Returns:
        The outcome and a short human-readable detail.
    """
    if response is None:
        return AttemptOutcome.AMBIGUOUS, "no response"

    if response.status_code >= 400:
        return AttemptOutcome.AMBIGUOUS, f"HTTP {response.status_code}"

    soup = make_soup(response.text)
    authenticated = has_authenticated_marker(soup)
    form_present = find_login_form(soup) is not None

    if form_present and not authenticated:
        message = portal_message(soup)
        return AttemptOutcome.FAILED, message or "login form still present"

    if authenticated and not form_present:
        if not new_cookies:
            return AttemptOutcome.AMBIGUOUS, "no session cookie"
        return AttemptOutcome.SUCCESS, ""

    if authenticated and form_present:
        return AttemptOutcome.AMBIGUOUS, "login form and logout link both present"

    return AttemptOutcome.AMBIGUOUS, "no authenticated markers"


class SessionNegotiator:
    """
    Performs the multi-step login handshake with the portal.

    Steps: fetch the entry page for an anonymous session cookie, fetch and
    parse the login form, submit the credentials (retrying a bounded number
    of times), then re-fetch the landing page to pick up rotated cookies and
    the link to the loan listing.

    Example:
        >>> negotiator = SessionNegotiator(http_client, "https://opac.example.jp")
        >>> negotiated = await negotiator.negotiate(credentials)
        >>> negotiated.listing_url
        'https://opac.example.jp/winj/opac/lend-list.do'
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        *,
        entry_path: str = ENTRY_PATH,
        login_path: str = LOGIN_PATH,
        listing_path: str = LISTING_PATH,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY,
        timeouts: Optional[StepTimeouts] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._client = http_client
        self.base_url = base_url.rstrip("/")
        self.entry_url = urljoin(self.base_url, entry_path)
        self.login_url = urljoin(self.base_url, login_path)
        self.listing_url = urljoin(self.base_url, listing_path)
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.timeouts = timeouts or StepTimeouts()
        self._sleep = sleep

    async def negotiate(self, credentials: Credentials) -> NegotiatedSession:
        """
        Log in and return an authenticated session.

        Args:
            credentials: Validated patron credentials.

        Returns:
            NegotiatedSession with the session, the listing URL and the attempts made.

        Raises:
            LoginError: If every attempt failed or a handshake page could not be fetched.
            PortalTimeoutError: If a handshake page timed out.
        """
        session = PortalSession(base_url=self.base_url)
        logger.info("Logging in to %s as %s", self.base_url, credentials.masked_identifier)

        await self._get(session, self.entry_url, self.timeouts.entry, "entry page")
        form_response = await self._get(
            session, self.login_url, self.timeouts.form, "login form", referer=self.entry_url
        )
        form = parse_login_form(form_response.text, str(form_response.url))
        logger.debug(
            "Login form posts to %s with %d hidden field(s)",
            form.action,
            len(form.hidden_fields),
        )

        attempts: list[LoginAttempt] = []
        attempt = LoginAttempt(number=1)
        response: Optional[httpx.Response] = None
        new_cookies: dict[str, str] = {}
        state = _State.ATTEMPT

        while state not in (_State.SUCCESS, _State.EXHAUSTED):
            if state is _State.ATTEMPT:
                response, new_cookies = await self._submit(session, form, credentials, attempt)
                state = _State.EVALUATE

            elif state is _State.EVALUATE:
                outcome, detail = classify_login_response(response, new_cookies)
                attempt.outcome = outcome
                attempt.detail = attempt.detail or detail
                attempt.session = session.snapshot()
                attempts.append(attempt)
                logger.info(
                    "Login attempt %d/%d: %s%s",
                    attempt.number,
                    self.max_attempts,
                    outcome.value,
                    f" ({attempt.detail})" if attempt.detail else "",
                )

                if outcome is AttemptOutcome.SUCCESS:
                    state = _State.SUCCESS
                elif attempt.number < self.max_attempts:
                    state = _State.RETRY
                else:
                    state = _State.EXHAUSTED

            elif state is _State.RETRY:
                await self._sleep(self.retry_delay)
                attempt = LoginAttempt(number=attempt.number + 1)
                response, new_cookies = None, {}
                state = _State.ATTEMPT

        if state is _State.EXHAUSTED:
            raise LoginError("attempts exhausted")

        landing_url = str(response.url)
        listing_url = await self._refresh_landing(session, landing_url)

        return NegotiatedSession(session=session, listing_url=listing_url, attempts=attempts)

    async def _get(
        self,
        session: PortalSession,
        url: str,
        timeout: float,
        what: str,
        referer: Optional[str] = None,
    ) -> httpx.Response:
        """Fetch a handshake page, recording its cookies."""
        headers = {"Referer": referer} if referer else None
        try:
            response = await self._client.get(url, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            raise PortalTimeoutError(f"{what} timed out") from e
        except httpx.HTTPError as e:
            raise LoginError(f"could not fetch {what}: {e}") from e

        if response.status_code >= 400:
            raise LoginError(f"{what} returned HTTP {response.status_code}")

        new_cookies = session.absorb(response)
        if new_cookies:
            logger.debug("Cookies set by %s: %s", what, ", ".join(sorted(new_cookies)))
        return response

    async def _submit(
        self,
        session: PortalSession,
        form: LoginForm,
        credentials: Credentials,
        attempt: LoginAttempt,
    ) -> tuple[Optional[httpx.Response], dict[str, str]]:
        """Post the credentials and hidden fields.

        Returns:
            The response (None if the request failed) and the cookies it set.
        """
        form_data = dict(form.hidden_fields)
        form_data[form.identifier_field] = credentials.identifier
        form_data[form.secret_field] = credentials.secret

        parsed = urlparse(form.page_url or self.login_url)
        headers = {
            "Referer": form.page_url or self.login_url,
            "Origin": f"{parsed.scheme}://{parsed.netloc}",
        }

        try:
            response = await self._client.post(
                form.action,
                data=form_data,
                headers=headers,
                timeout=self.timeouts.login,
            )
        except httpx.TimeoutException:
            attempt.detail = "login request timed out"
            return None, {}
        except httpx.HTTPError as e:
            attempt.detail = f"login request failed: {e.__class__.__name__}"
            return None, {}

        new_cookies = session.absorb(response)
        if new_cookies:
            logger.debug("Cookies set by login response: %s", ", ".join(sorted(new_cookies)))
        return response, new_cookies

    async def _refresh_landing(self, session: PortalSession, landing_url: str) -> str:
        """Re-fetch the landing page and locate the loan listing link."""
        response = await self._get(session, landing_url, self.timeouts.landing, "landing page")
        soup = make_soup(response.text)
        listing_url = find_listing_url(soup, str(response.url), self.listing_url)

        if listing_url == self.listing_url:
            logger.debug("No listing link found, using %s", listing_url)
        else:
            logger.debug("Found listing link %s", listing_url)
        return listing_url
