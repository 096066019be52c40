"""Unit tests for PageWrapper navigation, waits and page-level helpers."""

from __future__ import annotations

import contextlib
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from sitescrape.browser import BrowserWrapper, ElementWrapper, PageWrapper
from sitescrape.models.policy import SessionPolicy
from sitescrape.policy.throttle import Throttle


def _page(raw, **policy_fields) -> tuple[PageWrapper, MagicMock]:
    throttle = MagicMock(spec=Throttle)
    throttle.wait = AsyncMock()
    browser = BrowserWrapper(MagicMock(), SessionPolicy(**policy_fields), throttle=throttle)
    return PageWrapper(raw, browser), throttle


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


class TestNavigation:
    """goto/go_back/go_forward/reload share throttle, cookie and option handling."""

    @pytest.mark.anyio
    async def test_goto_merges_navigation_defaults(self, make_page) -> None:
        raw = make_page()
        page, throttle = _page(raw, navigation_timeout_ms=1234, wait_until="domcontentloaded")

        await page.goto("https://example.test/")

        raw.goto.assert_awaited_once_with("https://example.test/", timeout=1234, wait_until="domcontentloaded")
        throttle.wait.assert_awaited_once_with(None)

    @pytest.mark.anyio
    async def test_goto_caller_options_win(self, make_page) -> None:
        raw = make_page()
        page, throttle = _page(raw)

        await page.goto("https://example.test/", timeout=5, throttle_ms=900)

        raw.goto.assert_awaited_once_with("https://example.test/", timeout=5, wait_until="load")
        throttle.wait.assert_awaited_once_with(900)

    @pytest.mark.anyio
    @pytest.mark.parametrize("method", ["go_back", "go_forward", "reload"])
    async def test_history_navigation_is_throttled(self, make_page, method: str) -> None:
        raw = make_page()
        page, throttle = _page(raw, navigation_timeout_ms=10)

        await getattr(page, method)()

        getattr(raw, method).assert_awaited_once_with(timeout=10, wait_until="load")
        throttle.wait.assert_awaited_once()

    @pytest.mark.anyio
    async def test_cookies_cleared_before_navigation_when_configured(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw, clear_cookies_on_navigate=True)

        await page.goto("https://example.test/")
        await page.reload()

        assert raw.context.clear_cookies.await_count == 2

    @pytest.mark.anyio
    async def test_cookies_left_alone_by_default(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw)
        await page.goto("https://example.test/")
        raw.context.clear_cookies.assert_not_awaited()

    @pytest.mark.anyio
    async def test_close_clears_cookies_first(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw, clear_cookies_on_navigate=True)
        await page.close()
        raw.context.clear_cookies.assert_awaited_once()
        raw.close.assert_awaited_once()

    @pytest.mark.anyio
    async def test_close_still_closes_when_cookie_clearing_fails(self, make_page) -> None:
        raw = make_page()
        raw.context.clear_cookies = AsyncMock(side_effect=PlaywrightError("context gone"))
        page, _ = _page(raw, clear_cookies_on_navigate=True)

        with pytest.raises(PlaywrightError, match="context gone"):
            await page.close()
        raw.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# Popups and raw engine objects
# ---------------------------------------------------------------------------


class _EventInfo:
    def __init__(self, popup) -> None:
        self._popup = popup

    @property
    def value(self):
        async def resolve():
            return self._popup

        return resolve()


class TestPopups:
    @pytest.mark.anyio
    async def test_expect_popup_yields_augmented_page(self, make_page) -> None:
        raw, popup = make_page(), make_page("https://example.test/popup")

        @contextlib.asynccontextmanager
        async def expect_popup(**options):
            yield _EventInfo(popup)

        raw.expect_popup = MagicMock(side_effect=expect_popup)
        page, _ = _page(raw)

        async with page.expect_popup(timeout=500) as info:
            pass
        opened = await info.value

        assert isinstance(opened, PageWrapper)
        assert opened.raw is popup
        assert opened.browser() is page.browser()
        raw.expect_popup.assert_called_once_with(timeout=500)

    @pytest.mark.parametrize("name", ["context", "on", "wait_for_event", "expect_request", "expect_response"])
    def test_raw_object_members_not_passed_through(self, make_page, name: str) -> None:
        page = PageWrapper(make_page())
        with pytest.raises(AttributeError, match=r"\.raw"):
            getattr(page, name)


# ---------------------------------------------------------------------------
# click_and_navigate
# ---------------------------------------------------------------------------


class TestClickAndNavigate:
    @pytest.mark.anyio
    async def test_success_returns_true(self, make_page, make_element) -> None:
        raw = make_page()
        link = make_element()
        page, throttle = _page(raw, navigation_timeout_ms=50)

        assert await page.click_and_navigate(ElementWrapper(link)) is True

        link.click.assert_awaited_once()
        raw.expect_navigation.assert_called_once_with(timeout=50, wait_until="load")
        throttle.wait.assert_awaited_once()

    @pytest.mark.anyio
    async def test_navigation_timeout_returns_false(self, make_page, make_element) -> None:
        raw = make_page()
        link = make_element()
        link.click = AsyncMock(side_effect=PlaywrightTimeout("Timeout 50ms exceeded."))
        page, _ = _page(raw)

        assert await page.click_and_navigate(ElementWrapper(link)) is False


# ---------------------------------------------------------------------------
# Waits and helpers
# ---------------------------------------------------------------------------


class TestWaits:
    @pytest.mark.anyio
    async def test_wait_for_selector_applies_wait_timeout(self, make_page, make_element) -> None:
        raw = make_page(elements={"h1": make_element("Title")})
        page, _ = _page(raw, wait_timeout_ms=777)

        element = await page.wait_for_selector("h1")

        assert isinstance(element, ElementWrapper)
        raw.wait_for_selector.assert_awaited_once_with("h1", timeout=777)

    @pytest.mark.anyio
    async def test_wait_for_xpath_uses_xpath_engine(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw, wait_timeout_ms=10)

        await page.wait_for_xpath("//h1", timeout=20)

        raw.wait_for_selector.assert_awaited_once_with("xpath=//h1", timeout=20)

    @pytest.mark.anyio
    async def test_wait_for_function_applies_wait_timeout(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw, wait_timeout_ms=99)

        await page.wait_for_function("() => true")

        raw.wait_for_function.assert_awaited_once_with("() => true", arg=None, timeout=99)

    @pytest.mark.anyio
    async def test_scroll_to_bottom_waits_for_completion(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw, wait_timeout_ms=99)

        await page.scroll_to_bottom()

        assert "scrollBy" in raw.evaluate.await_args.args[0]
        expression = raw.wait_for_function.await_args.args[0]
        assert "scrollHeight" in expression
        assert raw.wait_for_function.await_args.kwargs["polling"] == 100

    @pytest.mark.anyio
    async def test_scroll_to_top(self, make_page) -> None:
        raw = make_page()
        page, _ = _page(raw)
        await page.scroll_to_top()
        assert "window.scrollY === 0" in raw.wait_for_function.await_args.args[0]

    @pytest.mark.anyio
    async def test_full_url_includes_fragment(self, make_page) -> None:
        raw = make_page()
        raw.evaluate = AsyncMock(return_value="https://example.test/#team")
        page, _ = _page(raw)
        assert await page.full_url() == "https://example.test/#team"


class TestContainerHelpers:
    @pytest.mark.anyio
    async def test_text_attr_href_by_selector(self, make_page, make_element) -> None:
        link = make_element("  Our\n team ", attrs={"title": "Team"}, props={"href": "https://example.test/team"})
        page, _ = _page(make_page(elements={"a": link}))

        assert await page.text("a") == "  Our\n team "
        assert await page.clean_text("a") == "Our team"
        assert await page.attr("a", "title") == "Team"
        assert await page.href("a") == "https://example.test/team"

    @pytest.mark.anyio
    async def test_missing_selector_defaults(self, make_page) -> None:
        page, _ = _page(make_page())
        assert await page.text("h2") == ""
        assert await page.clean_text("h2") == ""
        assert await page.attr("h2", "id") == ""
        assert await page.href("h2") is None
