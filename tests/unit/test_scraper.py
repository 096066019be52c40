"""Unit tests for the Scraper extraction protocol."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from sitescrape.browser import BrowserWrapper, PageWrapper
from sitescrape.exceptions import SessionClosedError
from sitescrape.models.target import ScrapeTarget
from sitescrape.scraper import Scraper


class TitleScraper(Scraper):
    targets = ["https://example.test/a", "https://example.test/b"]

    async def process(self, page, target):
        yield {"url": page.url, "title": await page.clean_text("h1")}


async def _collect(agen) -> list:
    return [item async for item in agen]


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class TestTargets:
    @pytest.mark.anyio
    async def test_class_targets(self) -> None:
        assert await _collect(TitleScraper().get_targets()) == ["https://example.test/a", "https://example.test/b"]

    @pytest.mark.anyio
    async def test_instance_targets_override_class(self) -> None:
        scraper = TitleScraper(None, "https://example.test/only")
        assert await _collect(scraper.get_targets()) == ["https://example.test/only"]

    @pytest.mark.anyio
    async def test_no_targets(self) -> None:
        assert await _collect(Scraper().get_targets()) == []

    def test_url_from_target_shapes(self) -> None:
        scraper = Scraper()
        assert scraper.url_from_target("https://example.test/") == "https://example.test/"
        assert scraper.url_from_target({"url": "https://example.test/m", "team": "x"}) == "https://example.test/m"
        assert scraper.url_from_target(ScrapeTarget(url="https://example.test/t", team="y")) == "https://example.test/t"
        assert scraper.url_from_target({"name": "no url"}) is None

    def test_name_defaults_to_class_name(self) -> None:
        class Named(Scraper):
            scraper_name = "team-pages"

        assert TitleScraper().name == "TitleScraper"
        assert Named().name == "team-pages"

    def test_browser_options_default(self) -> None:
        assert Scraper().browser_options() is None


# ---------------------------------------------------------------------------
# recoverable
# ---------------------------------------------------------------------------


class TestRecoverable:
    @pytest.mark.anyio
    async def test_items_before_failure_are_kept(self, caplog) -> None:
        async def step(page):
            yield 1
            raise ValueError("selector vanished")

        page = PageWrapper(MagicMock(url="https://example.test/p"))
        with caplog.at_level(logging.ERROR):
            items = await _collect(Scraper().recoverable(step, page))

        assert items == [1]
        assert "https://example.test/p" in caplog.text
        assert "selector vanished" in caplog.text

    @pytest.mark.anyio
    async def test_session_closed_is_reraised(self) -> None:
        async def step():
            yield 1
            raise PlaywrightError("Target page, context or browser has been closed")

        with pytest.raises(SessionClosedError):
            await _collect(Scraper().recoverable(step))

    @pytest.mark.anyio
    async def test_session_closed_error_passes_unchanged(self) -> None:
        original = SessionClosedError("gone")

        async def step():
            raise original
            yield  # pragma: no cover

        with pytest.raises(SessionClosedError) as exc_info:
            await _collect(Scraper().recoverable(step))
        assert exc_info.value is original

    @pytest.mark.anyio
    async def test_kwargs_are_forwarded(self) -> None:
        async def step(*, count):
            for i in range(count):
                yield i

        assert await _collect(Scraper().recoverable(step, count=3)) == [0, 1, 2]

    def test_sniff_url_from_browser_argument(self, raw_browser) -> None:
        browser = BrowserWrapper(raw_browser)
        raw_page = MagicMock(url="https://example.test/current")
        raw_browser.contexts[0].pages.append(raw_page)
        assert Scraper().sniff_current_url("x", browser) == "https://example.test/current"

    def test_sniff_url_without_hints(self) -> None:
        assert Scraper().sniff_current_url("x", 3) is None


# ---------------------------------------------------------------------------
# scrape
# ---------------------------------------------------------------------------


class TestScrape:
    @pytest.mark.anyio
    async def test_each_target_processed_and_closed(self, make_browser, make_page, make_element) -> None:
        raw_browser = make_browser(lambda: make_page(elements={"h1": make_element("  Team \n Page ")}))
        browser = BrowserWrapper(raw_browser)

        records = await _collect(TitleScraper().scrape(browser))

        assert records == [
            {"url": "https://example.test/a", "title": "Team Page"},
            {"url": "https://example.test/b", "title": "Team Page"},
        ]
        assert len(raw_browser.opened) == 2
        for raw_page in raw_browser.opened:
            raw_page.close.assert_awaited_once()

    @pytest.mark.anyio
    async def test_unloadable_target_skipped(self, make_browser, make_page, make_element) -> None:
        def page_factory():
            page = make_page(elements={"h1": make_element("ok")})

            async def goto(url, **options):
                if url.endswith("/a"):
                    raise PlaywrightError("net::ERR_CONNECTION_REFUSED")
                page.url = url

            page.goto = AsyncMock(side_effect=goto)
            return page

        browser = BrowserWrapper(make_browser(page_factory))
        records = await _collect(TitleScraper().scrape(browser))
        assert records == [{"url": "https://example.test/b", "title": "ok"}]

    @pytest.mark.anyio
    async def test_failed_processing_still_closes_page(self, make_browser) -> None:
        class Exploding(Scraper):
            targets = ["https://example.test/a", "https://example.test/b"]

            async def process(self, page, target):
                yield {"url": page.url}
                raise RuntimeError("layout changed")

        raw_browser = make_browser()
        records = await _collect(Exploding().scrape(BrowserWrapper(raw_browser)))

        assert [r["url"] for r in records] == ["https://example.test/a", "https://example.test/b"]
        assert all(p.close.await_count == 1 for p in raw_browser.opened)

    @pytest.mark.anyio
    async def test_default_process_yields_nothing(self, raw_browser) -> None:
        records = await _collect(Scraper(None, "https://example.test/").scrape(BrowserWrapper(raw_browser)))
        assert records == []
        assert raw_browser.opened[0].close.await_count == 1
