"""Tests for the stdin feed pump."""

from __future__ import annotations

import io
import json
from unittest.mock import AsyncMock

import pytest

from polymarket_watcher.__main__ import _pump_stdin


class TestPumpStdin:
    @pytest.mark.asyncio
    async def test_bad_lines_do_not_stop_the_stream(self) -> None:
        pipeline = AsyncMock()
        pipeline.on_event = AsyncMock(side_effect=[RuntimeError("boom"), True])
        lines = [
            "not json",
            "[1, 2]",
            "",
            json.dumps({"transactionHash": "0x1", "timestamp": 1e20, "price": "0.5", "size": "10"}),
            json.dumps({"transactionHash": "0x2", "price": "0.5", "size": "10"}),
        ]

        await _pump_stdin(pipeline, io.StringIO("\n".join(lines) + "\n"))

        assert pipeline.on_event.await_count == 2
        trade_ids = [call.args[0].trade_id for call in pipeline.on_event.await_args_list]
        assert trade_ids == ["0x1", "0x2"]
