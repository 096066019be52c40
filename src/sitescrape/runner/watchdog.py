"""Hard-timeout supervision for record streams.

A scraper that stops producing records (a hung page, a navigation that never
settles) would otherwise stall the run forever. The watchdog bounds the gap
between two consecutive items; time the consumer spends handling an item does
not count.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import TypeVar

from sitescrape.exceptions import WatchdogTimeoutError

T = TypeVar("T")


async def watchdog(stream: AsyncIterator[T], hard_timeout_ms: int, *, scraper_name: str = "") -> AsyncIterator[T]:
    """Re-yield *stream*, failing if any single item takes longer than *hard_timeout_ms*.

    The pending step of *stream* is cancelled when the window elapses, and
    *stream* is closed when the watchdog itself finishes or is closed.
    A ``hard_timeout_ms`` of zero or less disables supervision. A
    ``TimeoutError`` raised by *stream* itself propagates unchanged.

    Raises:
        WatchdogTimeoutError: When the gap before the next item exceeds the window.
    """
    iterator = aiter(stream)
    timeout_sec = hard_timeout_ms / 1000 if hard_timeout_ms > 0 else None
    try:
        while True:
            window = asyncio.timeout(timeout_sec)
            try:
                async with window:
                    item = await anext(iterator)
            except StopAsyncIteration:
                return
            except TimeoutError:
                if window.expired():
                    raise WatchdogTimeoutError(hard_timeout_ms, scraper_name) from None
                raise
            yield item
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
