"""Browser session lifecycle: one Playwright driver plus one Chromium per scraper run."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from sitescrape.browser.browser import BrowserWrapper, wrap_browser
from sitescrape.exceptions import ScrapeError
from sitescrape.models.policy import SessionPolicy

if TYPE_CHECKING:
    from sitescrape.policy.content_filter import ContentFilter


def launch_args(policy: SessionPolicy) -> list[str]:
    """Chromium command-line switches for *policy*."""
    args = ["--disable-dev-shm-usage"]
    if not policy.sandboxed:
        args += ["--no-sandbox", "--disable-setuid-sandbox"]
    return args


def launch_options(policy: SessionPolicy) -> dict[str, Any]:
    """Keyword arguments for ``BrowserType.launch``."""
    options: dict[str, Any] = {
        "headless": policy.headless,
        "args": launch_args(policy),
    }
    if policy.slow_mo_ms:
        options["slow_mo"] = policy.slow_mo_ms
    if policy.proxy.enabled:
        options["proxy"] = {"server": policy.proxy.url}
    return options


class Session:
    """Owns the Playwright driver and browser for one scraper run.

    Usage::

        async with Session(policy, content_filter=content_filter) as browser:
            page = await browser.try_open_page("https://example.test/")

    Args:
        policy: Options for the browser and every page it opens.
        content_filter: Request filter for this session's pages (``None`` = no routing).
        playwright_factory: Returns an object whose ``start()`` coroutine yields
            a Playwright instance; ``async_playwright`` in production.
        logger: Logger shared with the wrapped browser.
    """

    def __init__(
        self,
        policy: SessionPolicy,
        *,
        content_filter: ContentFilter | None = None,
        playwright_factory: Callable[[], Any] = async_playwright,
        logger: logging.Logger | None = None,
    ) -> None:
        self.policy = policy
        self.content_filter = content_filter
        self._playwright_factory = playwright_factory
        self._logger = logger or logging.getLogger(__name__)
        self._playwright: Any = None
        self._browser: BrowserWrapper | None = None

    @property
    def browser(self) -> BrowserWrapper | None:
        return self._browser

    async def launch(self) -> BrowserWrapper:
        """Start the driver and launch Chromium; returns the augmented browser."""
        if self._browser is not None:
            raise ScrapeError("Session already launched")

        options = launch_options(self.policy)
        self._logger.debug(
            "Launching chromium (headless=%s, sandboxed=%s, proxy=%s)",
            self.policy.headless,
            self.policy.sandboxed,
            self.policy.proxy.url or "-",
        )
        self._playwright = await self._playwright_factory().start()
        try:
            raw = await self._playwright.chromium.launch(**options)
        except BaseException:
            await self._stop_driver()
            raise

        self._browser = wrap_browser(raw, self.policy, content_filter=self.content_filter, logger=self._logger)
        return self._browser

    async def close(self) -> None:
        """Close the browser and stop the driver. Safe to call more than once."""
        browser, self._browser = self._browser, None
        try:
            if browser is not None:
                try:
                    await browser.close()
                except PlaywrightError as exc:
                    # Usually the browser already died underneath us.
                    self._logger.warning("Error closing browser: %s", exc)
        finally:
            await self._stop_driver()

    async def _stop_driver(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            await playwright.stop()

    async def __aenter__(self) -> BrowserWrapper:
        return await self.launch()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
