"""Exceptions raised by the library portal client."""

from __future__ import annotations


class LibraryClientError(Exception):
    """Base exception for library client errors."""
    pass


class InvalidCredentialFormatError(LibraryClientError):
    """Raised when credentials fail local validation, before any request is made."""

    def __init__(self, field: str, message: str):
        super().__init__(f"Invalid {field}: {message}")
        self.field = field


class LoginError(LibraryClientError):
    """Raised when login fails."""

    def __init__(self, reason: str):
        super().__init__(f"Login failed: {reason}")
        self.reason = reason


class PortalTimeoutError(LoginError):
    """Raised when a handshake request times out."""
    pass


class ListingUnavailableError(LibraryClientError):
    """Raised when the loan listing page cannot be retrieved."""

    def __init__(self, reason: str):
        super().__init__(f"Loan listing unavailable: {reason}")
        self.reason = reason


class ListingTimeoutError(ListingUnavailableError):
    """Raised when the listing request times out."""

    def __init__(self, reason: str = "request timed out"):
        super().__init__(reason)


class SessionExpiredError(ListingUnavailableError):
    """Raised when the session has expired."""

    def __init__(self, reason: str = "session expired"):
        super().__init__(reason)
