"""Local validation of patron credentials."""

from __future__ import annotations

import re

from library_jp_client.errors import InvalidCredentialFormatError
from library_jp_client.models import Credentials

IDENTIFIER_PATTERN = re.compile(r"^\d{8}$", re.ASCII)

MIN_SECRET_LENGTH = 4
MAX_SECRET_LENGTH = 20


def validate_credentials(
    identifier: str,
    secret: str,
    *,
    min_secret_length: int = MIN_SECRET_LENGTH,
    max_secret_length: int = MAX_SECRET_LENGTH,
) -> Credentials:
    """
    Check credentials against the portal's known input constraints.

    The identifier is the 8-digit patron card number. The portal does not
    publish its password rules, so the secret is checked for length only.

    Args:
        identifier: Patron card number.
        secret: Portal password.
        min_secret_length: Shortest accepted password.
        max_secret_length: Longest accepted password.

    Returns:
        Validated Credentials.

    Raises:
        InvalidCredentialFormatError: naming the field that failed.
    """
    identifier = (identifier or "").strip()
    if not IDENTIFIER_PATTERN.match(identifier):
        raise InvalidCredentialFormatError("identifier", "must be exactly 8 digits")

    secret = secret or ""
    if not min_secret_length <= len(secret) <= max_secret_length:
        raise InvalidCredentialFormatError(
            "secret",
            f"length must be between {min_secret_length} and {max_secret_length} characters",
        )

    return Credentials(identifier=identifier, secret=secret)
