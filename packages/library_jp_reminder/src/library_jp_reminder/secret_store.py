"""Lookup of credentials and the webhook URL by secret name."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

from library_jp_reminder.config import ReminderSettings
from library_jp_reminder.errors import SecretUnavailableError

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Anything that can fetch a secret value by name."""

    def get(self, name: str) -> str:
        """Return the secret, raising SecretUnavailableError if it cannot be read."""
        ...


def env_var_for(name: str) -> str:
    """Environment variable holding a secret, e.g. "library-id" -> "LIBRARY_ID"."""
    return name.upper().replace("-", "_").replace(".", "_")


class EnvSecretStore:
    """Reads secrets from environment variables.

    Deployments inject each secret as an environment variable named after
    the secret (see ``env_var_for``).
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._env = os.environ if env is None else env

    def get(self, name: str) -> str:
        value = self._env.get(env_var_for(name), "")
        if not value.strip():
            logger.error("Secret %s is not set (%s)", name, env_var_for(name))
            raise SecretUnavailableError(name)
        logger.debug("Read secret %s", name)
        return value.strip()


@dataclass(frozen=True)
class ReminderSecrets:
    """Everything secret a run needs."""

    library_id: str = field(repr=False)
    library_password: str = field(repr=False)
    webhook_url: str = field(repr=False)


def load_secrets(store: SecretStore, settings: ReminderSettings) -> ReminderSecrets:
    """
    Fetch the patron credentials and webhook URL.

    Raises:
        SecretUnavailableError: For the first secret that cannot be read.
    """
    return ReminderSecrets(
        library_id=store.get(settings.library_id_secret),
        library_password=store.get(settings.library_password_secret),
        webhook_url=store.get(settings.webhook_url_secret),
    )
