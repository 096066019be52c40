"""Unit tests for the record-stream watchdog."""

from __future__ import annotations

import asyncio

import pytest

from sitescrape.exceptions import WatchdogTimeoutError
from sitescrape.runner.watchdog import watchdog


async def _stream(delays: list[float], log: list[str] | None = None):
    try:
        for i, delay in enumerate(delays):
            await asyncio.sleep(delay)
            yield i
    finally:
        if log is not None:
            log.append("closed")


class TestWatchdog:
    @pytest.mark.anyio
    async def test_passes_items_through(self) -> None:
        items = [i async for i in watchdog(_stream([0, 0, 0]), 1000)]
        assert items == [0, 1, 2]

    @pytest.mark.anyio
    async def test_fires_on_long_gap(self) -> None:
        received = []
        with pytest.raises(WatchdogTimeoutError) as exc_info:
            async for item in watchdog(_stream([0, 0.5]), 50, scraper_name="slowpoke"):
                received.append(item)

        assert received == [0]
        assert exc_info.value.timeout_ms == 50
        assert exc_info.value.scraper_name == "slowpoke"

    @pytest.mark.anyio
    async def test_consumer_time_is_not_counted(self) -> None:
        received = []
        async for item in watchdog(_stream([0, 0, 0]), 50):
            received.append(item)
            await asyncio.sleep(0.1)
        assert received == [0, 1, 2]

    @pytest.mark.anyio
    async def test_disabled_with_zero(self) -> None:
        items = [i async for i in watchdog(_stream([0, 0.1]), 0)]
        assert items == [0, 1]

    @pytest.mark.anyio
    async def test_inner_stream_closed_on_early_exit(self) -> None:
        log: list[str] = []
        stream = watchdog(_stream([0, 0, 0], log), 1000)
        async for _ in stream:
            break
        await stream.aclose()
        assert log == ["closed"]

    @pytest.mark.anyio
    async def test_stream_errors_propagate(self) -> None:
        async def broken():
            yield 1
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            async for _ in watchdog(broken(), 1000):
                pass

    @pytest.mark.anyio
    @pytest.mark.parametrize("hard_timeout_ms", [0, 1000])
    async def test_stream_timeout_error_is_not_a_watchdog_fault(self, hard_timeout_ms: int) -> None:
        async def slow_lookup():
            yield 1
            raise TimeoutError("directory lookup timed out")

        received = []
        with pytest.raises(TimeoutError, match="directory lookup") as exc_info:
            async for item in watchdog(slow_lookup(), hard_timeout_ms):
                received.append(item)

        assert received == [1]
        assert not isinstance(exc_info.value, WatchdogTimeoutError)
