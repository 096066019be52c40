"""The runner: drives scrapers to completion and routes their records to sinks.

One ``Runner.run()`` call:

1. builds the shared ad matcher if any scraper blocks ads (fail-fast),
2. opens every sink,
3. for each scraper, in order, launches a :class:`Session`, drains
   ``scraper.scrape()`` under the watchdog, and dispatches each record
   (coerce, validate, route by ``Record.kind``), then closes the session,
4. closes every sink.

Faults while validating or sinking a record, and faults that escape a
scraper's stream, go to :meth:`Runner.handle_unwrapped_error`. By default
they escalate and abort the run; subclasses (or ``runner.escalate_errors =
false``) may log and continue instead. Watchdog timeouts and closed sessions
are always fatal and never reach the hook.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import aclosing
from typing import Any

from sitescrape.browser.browser import BrowserWrapper
from sitescrape.exceptions import ScrapeError, SessionClosedError, WatchdogTimeoutError, wrap_error
from sitescrape.models.policy import SessionPolicy
from sitescrape.models.record import Record, coerce_record
from sitescrape.models.states import RunState, can_transition
from sitescrape.policy.content_filter import AdMatcher, build_content_filter, filter_for_policy
from sitescrape.runner.session import Session
from sitescrape.runner.watchdog import watchdog
from sitescrape.scraper import Scraper
from sitescrape.settings import Settings, get_settings
from sitescrape.sinks import ConsoleSink, Sink
from sitescrape.utils import listify


class Runner:
    """Runs scrapers in-process, one browser session at a time.

    Args:
        settings: Resolved settings (defaults to :func:`get_settings`).
        sinks: Sinks keyed by record kind (the record class name).
        default_sink: Sink for records with no registered kind; a
            :class:`ConsoleSink` when omitted.
        policy: Base session policy; derived from *settings* when omitted.
            Each scraper's ``browser_options()`` are merged over it.
        session_factory: Builds a session from ``(policy, content_filter=, logger=)``.
        logger: Logger for the runner and everything it launches.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        sinks: dict[str, Sink] | None = None,
        default_sink: Sink | None = None,
        policy: SessionPolicy | None = None,
        session_factory: Callable[..., Session] = Session,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self.policy = policy or SessionPolicy.from_settings(self.settings)
        self.default_sink = default_sink or ConsoleSink()
        self.sinks: dict[str, Sink] = {}
        for kind, sink in (sinks or {}).items():
            self.register_sink(kind, sink)
        self.escalate_errors = self.settings.runner.escalate_errors
        self._session_factory = session_factory
        self._ad_matcher: AdMatcher | None = None
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def _set_state(self, new: RunState) -> None:
        if not can_transition(self._state, new):
            self.logger.warning("Unexpected runner transition %s -> %s", self._state.value, new.value)
        self.logger.debug("Runner state %s -> %s", self._state.value, new.value)
        self._state = new

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def register_sink(self, kind: str | type[Record], sink: Sink) -> None:
        """Route records of *kind* (a record class or its name) to *sink*."""
        key = kind if isinstance(kind, str) else kind.__name__
        self.sinks[key] = sink

    def sink_for(self, record: Record) -> Sink:
        """The sink registered for ``record.kind``, else the default sink."""
        return self.sinks.get(record.kind, self.default_sink)

    def _all_sinks(self) -> list[Sink]:
        unique: list[Sink] = []
        for sink in [self.default_sink, *self.sinks.values()]:
            if not any(sink is seen for seen in unique):
                unique.append(sink)
        return unique

    async def _close_sinks(self, opened: list[Sink]) -> None:
        while opened:
            await opened.pop().close()

    async def _close_sinks_quietly(self, opened: list[Sink]) -> None:
        while opened:
            sink = opened.pop()
            try:
                await sink.close()
            except Exception:
                self.logger.warning("Failed to close sink %s during teardown", sink.name, exc_info=True)

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    async def run(self, scrapers: Scraper | type[Scraper] | Iterable[Scraper | type[Scraper]]) -> bool:
        """Run each scraper to completion, in order.

        Args:
            scrapers: One scraper or many; classes are instantiated with this runner.

        Returns:
            True once every scraper finished and every sink closed.

        Raises:
            ScrapeError: Any escalated fault. The run is aborted, and the
                session and sinks are closed before it propagates.
        """
        self._state = RunState.IDLE
        scraper_list = [self._bind(s) for s in listify(scrapers)]
        plans = [(s, self.policy.merged(s.browser_options())) for s in scraper_list]

        opened: list[Sink] = []
        try:
            if any(not policy.load_ads for _, policy in plans):
                self._set_state(RunState.FILTER_BUILDING)
                await self.build_ad_matcher(next(policy for _, policy in plans if not policy.load_ads))

            self._set_state(RunState.SINKS_OPENING)
            for sink in self._all_sinks():
                await sink.open()
                opened.append(sink)

            for scraper, policy in plans:
                await self.run_scraper(scraper, policy)

            self._set_state(RunState.SINKS_CLOSING)
            await self._close_sinks(opened)
        except BaseException as exc:
            self.logger.error("Run failed: %s", exc)
            self._set_state(RunState.FAILED)
            await self._close_sinks_quietly(opened)
            raise

        self._set_state(RunState.DONE)
        return True

    def _bind(self, scraper: Scraper | type[Scraper]) -> Scraper:
        if isinstance(scraper, type):
            return scraper(self, logger=self.logger)
        if scraper.runner is None:
            scraper.runner = self
        return scraper

    async def build_ad_matcher(self, policy: SessionPolicy) -> AdMatcher | None:
        """Download the configured block lists once per runner and parse them."""
        if self._ad_matcher is None:
            blocklists = self.settings.blocklists
            content_filter = await build_content_filter(
                policy,
                blocklists.sources,
                timeout_sec=blocklists.fetch_timeout_sec,
                logger=self.logger,
            )
            self._ad_matcher = content_filter.ad_matcher if content_filter else None
        return self._ad_matcher

    async def run_scraper(self, scraper: Scraper, policy: SessionPolicy) -> bool:
        """Launch a session for *scraper*, dispatch everything it yields, then close the session."""
        self._set_state(RunState.SESSION_LAUNCHING)
        self.logger.info("Running scraper %s", scraper.name)
        session = self._session_factory(
            policy, content_filter=filter_for_policy(policy, self._ad_matcher), logger=self.logger
        )
        count = 0
        try:
            browser = await session.launch()
            self._set_state(RunState.SCRAPING)
            async with aclosing(self._scraper_items(scraper, browser, policy)) as items:
                async for item in items:
                    if await self.dispatch(item, scraper):
                        count += 1
        except BaseException:
            self._set_state(RunState.SESSION_CLOSING)
            await self._close_session_quietly(session)
            raise

        self._set_state(RunState.SESSION_CLOSING)
        await session.close()
        self.logger.info("Scraper %s finished: %d records", scraper.name, count)
        return True

    async def _scraper_items(self, scraper: Scraper, browser: BrowserWrapper, policy: SessionPolicy) -> AsyncIterator[Any]:
        stream = watchdog(scraper.scrape(browser), policy.hard_timeout_ms, scraper_name=scraper.name)
        async with aclosing(stream):
            try:
                async for item in stream:
                    yield item
            except (WatchdogTimeoutError, SessionClosedError):
                raise
            except Exception as exc:
                self.handle_unwrapped_error(exc, scraper.sniff_current_url())

    async def _close_session_quietly(self, session: Session) -> None:
        try:
            await session.close()
        except Exception:
            self.logger.warning("Failed to close session during teardown", exc_info=True)

    async def dispatch(self, item: Any, scraper: Scraper | None = None) -> bool:
        """Coerce, validate and sink one scraped item.

        Returns:
            True if the record reached a sink. A record that fails validation
            is never sunk, even when the error hook chooses to continue.
        """
        try:
            record = coerce_record(item)
            record.validate()
        except Exception as exc:
            self.handle_unwrapped_error(exc, scraper.sniff_current_url() if scraper else None)
            return False

        sink = self.sink_for(record)
        try:
            await sink.process(record)
        except Exception as exc:
            self.handle_unwrapped_error(exc, scraper.sniff_current_url() if scraper else None)
            return False
        return True

    # ------------------------------------------------------------------
    # Error hooks
    # ------------------------------------------------------------------

    def handle_unwrapped_error(self, exc: BaseException, url: str | None = None) -> None:
        """Wrap *exc* into the :class:`ScrapeError` family and pass it to :meth:`handle_error`."""
        self.handle_error(wrap_error(exc), url)

    def handle_error(self, error: ScrapeError, url: str | None = None) -> None:
        """Decide what a fault means for the run.

        The default escalates (re-raises) when ``escalate_errors`` is set,
        otherwise logs and lets the run continue. Override for custom policies.
        """
        if self.escalate_errors:
            raise error
        self.logger.error("Continuing after error%s: %s", f" on {url}" if url else "", error, exc_info=error)
