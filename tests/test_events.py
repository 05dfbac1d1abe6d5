"""Tests for the in-process event bus."""

from __future__ import annotations

from polymarket_watcher.events import (
    TOPIC_FRESH_WALLET_DETECTED,
    TOPIC_QUALIFYING_EVENT,
    BusMessage,
    EventBus,
    FreshWalletDetected,
    QualifyingEvent,
)


class TestEventBus:
    def test_routes_by_topic(self, make_trade, make_profile) -> None:
        bus = EventBus()
        events: list[BusMessage] = []
        wallets: list[BusMessage] = []
        bus.subscribe(TOPIC_QUALIFYING_EVENT, events.append)
        bus.subscribe(TOPIC_FRESH_WALLET_DETECTED, wallets.append)

        assert bus.publish(QualifyingEvent(event=make_trade())) == 1
        assert bus.publish(FreshWalletDetected(profile=make_profile())) == 1

        assert len(events) == 1
        assert isinstance(events[0], QualifyingEvent)
        assert len(wallets) == 1
        assert isinstance(wallets[0], FreshWalletDetected)

    def test_failing_handler_does_not_block_others(self, make_trade) -> None:
        bus = EventBus()
        received: list[BusMessage] = []

        def broken(message: BusMessage) -> None:
            raise RuntimeError("boom")

        bus.subscribe(TOPIC_QUALIFYING_EVENT, broken)
        bus.subscribe(TOPIC_QUALIFYING_EVENT, received.append)

        assert bus.publish(QualifyingEvent(event=make_trade())) == 1
        assert len(received) == 1

    def test_unsubscribe(self, make_trade) -> None:
        bus = EventBus()
        received: list[BusMessage] = []
        bus.subscribe(TOPIC_QUALIFYING_EVENT, received.append)
        assert bus.subscriber_count(TOPIC_QUALIFYING_EVENT) == 1

        bus.unsubscribe(TOPIC_QUALIFYING_EVENT, received.append)
        bus.unsubscribe(TOPIC_QUALIFYING_EVENT, received.append)

        assert bus.publish(QualifyingEvent(event=make_trade())) == 0
        assert bus.subscriber_count(TOPIC_QUALIFYING_EVENT) == 0

    def test_publish_without_subscribers(self, make_profile) -> None:
        assert EventBus().publish(FreshWalletDetected(profile=make_profile())) == 0
