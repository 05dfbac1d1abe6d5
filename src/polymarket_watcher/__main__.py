"""Run the watcher as ``python -m polymarket_watcher``.

Feed messages are read from stdin as newline-delimited JSON, one live-data
payload per line, so any feed client can be piped in.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sys
from typing import TextIO

from polymarket_watcher.config import get_settings
from polymarket_watcher.ingestor.models import TradeEvent
from polymarket_watcher.pipeline import Pipeline

logger = logging.getLogger("polymarket_watcher")


async def _pump_stdin(pipeline: Pipeline, stream: TextIO = sys.stdin) -> None:
    while True:
        line = await asyncio.to_thread(stream.readline)
        if not line:
            logger.info("Feed input closed")
            return
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Skipping malformed feed line: %s", e)
            continue
        if not isinstance(payload, dict):
            continue
        try:
            await pipeline.on_event(TradeEvent.from_feed_message(payload))
        except Exception as e:
            logger.warning("Skipping feed line that failed processing: %s", e)


async def _main() -> None:
    settings = get_settings()
    logger.info("Starting with settings: %s", settings.redacted_summary())

    async with Pipeline(settings) as pipeline:
        pump = asyncio.create_task(_pump_stdin(pipeline))
        try:
            await pump
            # Keep refreshing wallets after the feed ends until interrupted.
            await asyncio.Event().wait()
        finally:
            pump.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await pump


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.get_logging_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_main())


if __name__ == "__main__":
    main()
