"""Data models for library portal interactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

import httpx


@dataclass(frozen=True)
class Credentials:
    """Patron credentials for the portal login form.

    Build instances through ``validate_credentials`` so the format checks
    run before any request is issued.
    """

    identifier: str
    secret: str = field(repr=False)

    @property
    def masked_identifier(self) -> str:
        """Identifier with everything but the last two digits hidden."""
        return "*" * max(len(self.identifier) - 2, 0) + self.identifier[-2:]

    def __repr__(self) -> str:
        return f"Credentials(identifier={self.masked_identifier!r}, secret='***')"

    __str__ = __repr__


@dataclass
class PortalSession:
    """Cookie state exchanged with the portal during a single run.

    Cookies are kept as a name -> value mapping. New ``Set-Cookie`` values
    override earlier ones with the same name.
    """

    base_url: str
    cookies: dict[str, str] = field(default_factory=dict)

    @property
    def is_usable(self) -> bool:
        """A session is usable once at least one cookie has been captured."""
        return bool(self.cookies)

    def update(self, cookies: dict[str, str]) -> None:
        """Apply a batch of cookies, overriding existing names."""
        self.cookies.update(cookies)

    def absorb(self, response: httpx.Response) -> dict[str, str]:
        """Record every cookie set by a response and its redirect chain.

        Returns:
            The cookies set by this exchange (empty if none).
        """
        seen: dict[str, str] = {}
        for item in [*response.history, response]:
            for name, value in item.cookies.items():
                seen[name] = value
        self.update(seen)
        return seen

    def snapshot(self) -> "PortalSession":
        """Return an independent copy of the current state."""
        return PortalSession(base_url=self.base_url, cookies=dict(self.cookies))


class AttemptOutcome(str, Enum):
    """Result of one credential submission."""
    PENDING = "pending"
    SUCCESS = "success"
    AMBIGUOUS = "ambiguous"
    FAILED = "failed"


@dataclass
class LoginAttempt:
    """One pass through the credential submission step."""

    number: int
    outcome: AttemptOutcome = AttemptOutcome.PENDING
    session: Optional[PortalSession] = None
    detail: str = ""


@dataclass(frozen=True)
class LoanRecord:
    """A borrowed item with its return due date."""

    title: str
    due_date: date

    def __str__(self) -> str:
        return f"{self.title} (due: {self.due_date})"


@dataclass
class LoginForm:
    """The login form as discovered on the portal's form page."""

    action: str
    identifier_field: str
    secret_field: str
    hidden_fields: dict[str, str] = field(default_factory=dict)
    page_url: str = ""


@dataclass
class NegotiatedSession:
    """An authenticated session plus what was learned while establishing it."""

    session: PortalSession
    listing_url: str
    attempts: list[LoginAttempt] = field(default_factory=list)
