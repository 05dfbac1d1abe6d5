"""In-process event bus with typed payloads.

Each topic carries exactly one payload type. Handlers are plain callables
invoked synchronously by ``publish``; a handler that needs I/O must hand
the work to a task and return.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import ClassVar, TypeAlias

from polymarket_watcher.ingestor.models import TradeEvent
from polymarket_watcher.profiler.models import WalletProfile

logger = logging.getLogger(__name__)

TOPIC_QUALIFYING_EVENT = "polymarket:event"
TOPIC_FRESH_WALLET_DETECTED = "polymarket:fresh_wallet_detected"


@dataclass(frozen=True)
class QualifyingEvent:
    """An event that passed admission and was forwarded."""

    topic: ClassVar[str] = TOPIC_QUALIFYING_EVENT

    event: TradeEvent


@dataclass(frozen=True)
class FreshWalletDetected:
    """A refreshed wallet classified as fresh."""

    topic: ClassVar[str] = TOPIC_FRESH_WALLET_DETECTED

    profile: WalletProfile


BusMessage: TypeAlias = QualifyingEvent | FreshWalletDetected
Handler: TypeAlias = Callable[[BusMessage], None]


class EventBus:
    """Topic-keyed publish/subscribe within one process."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._handlers[topic].append(handler)

    def unsubscribe(self, topic: str, handler: Handler) -> None:
        handlers = self._handlers.get(topic)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))

    def publish(self, message: BusMessage) -> int:
        """Call every subscriber of the message's topic.

        A failing handler is logged and does not stop delivery to the
        others. Returns the number of handlers that completed.
        """
        delivered = 0
        for handler in list(self._handlers.get(message.topic, ())):
            try:
                handler(message)
                delivered += 1
            except Exception as e:
                logger.error("Subscriber %r failed on %s: %s", handler, message.topic, e)
        return delivered
