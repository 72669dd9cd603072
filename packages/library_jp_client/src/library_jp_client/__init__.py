"""
Library JP Client - A utility library for reading loans from a Japanese city library OPAC.

This library provides functionality to:
- Validate patron credentials before contacting the portal
- Log in through the portal's multi-step form handshake
- Fetch the loan listing page
- Extract (title, due date) pairs from unstable listing markup
"""

from library_jp_client.client import LibraryClient
from library_jp_client.credentials import validate_credentials
from library_jp_client.errors import (
    InvalidCredentialFormatError,
    LibraryClientError,
    ListingTimeoutError,
    ListingUnavailableError,
    LoginError,
    PortalTimeoutError,
    SessionExpiredError,
)
from library_jp_client.extraction import PatternStrategy, TableStrategy, TabularExtractor
from library_jp_client.listing import ListingFetcher
from library_jp_client.models import (
    AttemptOutcome,
    Credentials,
    LoanRecord,
    LoginAttempt,
    NegotiatedSession,
    PortalSession,
)
from library_jp_client.portal import StepTimeouts
from library_jp_client.session import SessionNegotiator

__all__ = [
    "LibraryClient",
    "LibraryClientError",
    "InvalidCredentialFormatError",
    "ListingTimeoutError",
    "ListingUnavailableError",
    "LoginError",
    "PortalTimeoutError",
    "SessionExpiredError",
    "validate_credentials",
    "ListingFetcher",
    "PatternStrategy",
    "SessionNegotiator",
    "StepTimeouts",
    "TableStrategy",
    "TabularExtractor",
    "AttemptOutcome",
    "Credentials",
    "LoanRecord",
    "LoginAttempt",
    "NegotiatedSession",
    "PortalSession",
]
