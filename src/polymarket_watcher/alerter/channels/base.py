"""Delivery channel interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class NotificationError(Exception):
    """Raised when a notification cannot be delivered or is not configured."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class MessagingChannel(Protocol):
    """Something that can deliver a rendered message to recipients."""

    async def send(self, recipients: Sequence[str], text: str) -> None:
        """Deliver ``text`` to every recipient.

        Succeeds if at least one recipient accepted the message.

        Raises:
            NotificationError: If the channel is unusable or no recipient
                accepted the message.
        """
        ...

    async def aclose(self) -> None: ...
