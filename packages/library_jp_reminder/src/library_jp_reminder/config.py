"""Run configuration read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from library_jp_client.portal import DEFAULT_BASE_URL

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _get_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


@dataclass
class ReminderSettings:
    """
    Settings for one reminder run.

    Secrets themselves are not configuration; only the names under which
    the secret store holds them are.
    """

    base_url: str = DEFAULT_BASE_URL
    library_id_secret: str = "library-id"
    library_password_secret: str = "library-password"
    webhook_url_secret: str = "discord-webhook-url"
    timezone: str = "Asia/Tokyo"
    due_soon_includes_today: bool = True
    login_max_attempts: int = 2
    login_retry_delay: float = 2.0
    log_level: str = "INFO"

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ReminderSettings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a variable is set to something unusable.
        """
        env = os.environ if env is None else env

        timezone = env.get("REMINDER_TIMEZONE") or cls.timezone
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"REMINDER_TIMEZONE is not a known time zone: {timezone!r}") from None

        return cls(
            base_url=(env.get("LIBRARY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            library_id_secret=env.get("LIBRARY_ID_SECRET") or cls.library_id_secret,
            library_password_secret=env.get("LIBRARY_PASSWORD_SECRET") or cls.library_password_secret,
            webhook_url_secret=env.get("WEBHOOK_URL_SECRET") or cls.webhook_url_secret,
            timezone=timezone,
            due_soon_includes_today=_get_bool(env, "DUE_SOON_INCLUDES_TODAY", True),
            login_max_attempts=_get_int(env, "LOGIN_MAX_ATTEMPTS", 2, minimum=1),
            login_retry_delay=_get_float(env, "LOGIN_RETRY_DELAY", 2.0),
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )
