"""Delivery of the reminder to a chat webhook with exponential backoff retry."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from library_jp_reminder.errors import NotificationError

logger = logging.getLogger(__name__)

# Discord rejects message content longer than this
MAX_MESSAGE_LENGTH = 2000


def split_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split a message into chunks of at most ``limit`` characters, on line boundaries where possible."""
    chunks: list[str] = []
    current = ""

    for line in message.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]

        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks


class WebhookNotifier:
    """Posts messages to a Discord-style webhook."""

    def __init__(
        self,
        webhook_url: str,
        *,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.webhook_url = webhook_url
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep

    async def send(self, message: str) -> None:
        """
        Send a message, split into as many posts as needed.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s (backoff_base * 2^attempt)
        - Retries on 5xx, 429 and network failures
        - Other 4xx responses fail immediately

        Raises:
            NotificationError: If a post could not be delivered.
        """
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
            for chunk in split_message(message):
                await self._post(client, {"content": chunk})

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> None:
        attempt = 0
        while True:
            try:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
                return  # Success

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status != 429 and status < 500:
                    raise NotificationError(f"Webhook rejected the message: HTTP {status}") from e
                error: Exception = e

            except httpx.RequestError as e:
                error = e

            attempt += 1
            if attempt >= self.max_retries:
                # Final failure after all retries
                raise NotificationError(
                    f"Webhook delivery failed after {attempt} attempt(s): {error.__class__.__name__}"
                ) from error

            backoff = self.backoff_base * (2 ** (attempt - 1))
            logger.warning("Webhook delivery failed (%s), retrying in %.1fs", error.__class__.__name__, backoff)
            await self._sleep(backoff)
