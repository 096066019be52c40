"""The extraction protocol.

A scraper turns targets into records. The simplest one sets ``targets`` and
implements ``process`` as an async generator::

    class StaffScraper(Scraper):
        targets = ["https://example.test/staff"]

        async def process(self, page, target):
            for row in await page.query_selector_all("tr.person"):
                yield {"name": await row.clean_text("td.name"), "email": await row.attr("a", "href")}

The runner launches a session per scraper and drains :meth:`Scraper.scrape`.
Each target gets its own page; a failure while processing one target is
logged and the scraper moves on to the next (see :meth:`Scraper.recoverable`).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from typing import TYPE_CHECKING, Any, ClassVar

from playwright.async_api import Error as PlaywrightError

from sitescrape.browser.browser import BrowserWrapper
from sitescrape.browser.page import PageWrapper
from sitescrape.exceptions import SessionClosedError, is_session_closed
from sitescrape.models.target import url_from_target
from sitescrape.utils import listify

if TYPE_CHECKING:
    from sitescrape.runner.runner import Runner


class Scraper:
    """Base class for every scraper.

    Args:
        runner: The runner driving this scraper, if any.
        targets: One target or a list of them; overrides the class-level ``targets``.
        logger: Logger for recoverable faults (defaults to the module logger).
    """

    #: One target or many. A target is a URL string or anything with a ``url``.
    targets: Any = None
    #: Name used in logs; defaults to the class name.
    scraper_name: ClassVar[str | None] = None

    def __init__(
        self,
        runner: Runner | None = None,
        targets: Any = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.runner = runner
        if targets is not None:
            self.targets = listify(targets)
        self.name = type(self).scraper_name or type(self).__name__
        self.logger = logger or logging.getLogger(__name__)
        self.browser: BrowserWrapper | None = None

    async def get_targets(self) -> AsyncIterator[Any]:
        """Yield the targets to scrape. Override to generate them dynamically."""
        for target in listify(self.targets):
            yield target

    def browser_options(self) -> dict[str, Any] | None:
        """Return ``SessionPolicy`` field overrides for this scraper's session, or ``None``."""
        return None

    def url_from_target(self, target: Any) -> str | None:
        return url_from_target(target)

    async def recoverable(
        self, step: Callable[..., AsyncIterator[Any]], *args: Any, **kwargs: Any
    ) -> AsyncIterator[Any]:
        """Run the async generator *step*, re-yielding its items, and survive its failures.

        Any exception raised by *step* is logged together with the URL the
        scraper was on and then dropped, so the caller carries on with its
        next unit of work. A closed session is the exception: it is raised as
        :class:`SessionClosedError` because nothing can continue on it.

        Example::

            async def process(self, page, target):
                for link in await page.query_selector_all("a.profile"):
                    async for item in self.recoverable(self.scrape_profile, page, link):
                        yield item
        """
        try:
            async for item in step(*args, **kwargs):
                yield item
        except Exception as exc:
            if is_session_closed(exc):
                self.logger.error("%s: recoverable saw a closed session; giving up.", self.name)
                if isinstance(exc, SessionClosedError):
                    raise
                raise SessionClosedError(str(exc)) from exc
            url = self.sniff_current_url(*args, *kwargs.values())
            self.logger.error("%s: recoverable on %s: %s", self.name, url or "<unknown url>", exc, exc_info=True)

    def sniff_current_url(self, *args: Any) -> str | None:
        """Best guess at the URL being worked on, from the arguments of a failed step.

        A page argument wins; otherwise a browser argument (or the scraper's
        own browser) is asked for its current page.
        """
        browser = self.browser
        for arg in args:
            if isinstance(arg, PageWrapper):
                return arg.url
            if isinstance(arg, BrowserWrapper):
                browser = arg
        if browser is None:
            return None
        try:
            page = browser.current_page()
        except PlaywrightError:
            return None
        return page.url if page is not None else None

    async def scrape(self, browser: BrowserWrapper) -> AsyncIterator[Any]:
        """Open each target in its own page and yield whatever ``process`` yields.

        Targets that fail to load are skipped. The page is closed after each
        target, whether processing succeeded or not.
        """
        self.browser = browser
        async for target in self.get_targets():
            url = self.url_from_target(target)
            if not url:
                self.logger.warning("%s: target %r has no URL; skipping.", self.name, target)
                continue
            page = await browser.try_open_page(url)
            if page is None:
                continue
            try:
                async for item in self.recoverable(self.process, page, target):
                    yield item
            finally:
                await self._close_page(page, url)

    async def process(self, page: PageWrapper, target: Any) -> AsyncIterator[Any]:
        """Yield records scraped from *page*. Subclasses override this."""
        self.logger.warning("%s: process() is not implemented; nothing scraped from %s", self.name, page.url)
        return
        yield  # pragma: no cover

    async def _close_page(self, page: PageWrapper, url: str) -> None:
        try:
            await page.close()
        except PlaywrightError as exc:
            self.logger.warning("%s: failed to close page for %s: %s", self.name, url, exc)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"
