"""Page-load throttling.

Keeps a minimum interval between navigation-class operations so a scraper
stays a good citizen. One ``Throttle`` belongs to one session; it is consulted
sequentially and is not safe to share across concurrently running tasks.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable


class Throttle:
    """Minimum-interval throttle for page loads.

    Args:
        min_interval_ms: Minimum time between two permitted loads (0 disables).
        clock: Monotonic clock returning seconds.
        sleep: Coroutine used to suspend the caller, taking seconds.
        logger: Logger for diagnostics (defaults to the module logger).
    """

    def __init__(
        self,
        min_interval_ms: int = 0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._interval_ms = max(0, int(min_interval_ms))
        self._clock = clock
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)
        self._last_load: float | None = None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    def remaining_ms(self, override_ms: int | None = None) -> float:
        """Milliseconds the next load would have to wait right now."""
        interval = self._interval_ms if override_ms is None else max(0, int(override_ms))
        if not interval or self._last_load is None:
            return 0.0
        elapsed_ms = (self._clock() - self._last_load) * 1000
        return max(0.0, interval - elapsed_ms)

    async def wait(self, override_ms: int | None = None) -> None:
        """Sleep out the remaining interval, then stamp this load.

        Args:
            override_ms: Use this interval instead of the configured one for this call.
        """
        remaining = self.remaining_ms(override_ms)
        if remaining > 0:
            self._logger.debug("Throttling page load for %.0fms", remaining)
            await self._sleep(remaining / 1000)
        self._last_load = self._clock()
