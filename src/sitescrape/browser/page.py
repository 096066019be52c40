"""Augmented ``Frame`` and ``Page``.

Pages pick up their navigation and wait defaults from the owning browser's
:class:`~sitescrape.models.policy.SessionPolicy`. Every navigation-class call
(``goto``, ``go_back``, ``go_forward``, ``reload``, ``click_and_navigate``)
waits on the browser's throttle and clears cookies first when the policy asks
for it.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from sitescrape.browser.element import ElementWrapper, wrap_element
from sitescrape.browser.handles import HandleWrapper, unwrap
from sitescrape.models.policy import SessionPolicy
from sitescrape.utils import clean_whitespace, merge

if TYPE_CHECKING:
    from playwright.async_api import Response

    from sitescrape.browser.browser import BrowserWrapper

logger = logging.getLogger(__name__)

_SCROLL_POLLING_MS = 100

_SCROLL_TOP_JS = "() => window.scrollBy(0, -document.body.scrollHeight)"
_SCROLL_TOP_DONE_JS = "() => window.scrollY === 0"
_SCROLL_BOTTOM_JS = "() => window.scrollBy(0, document.body.scrollHeight)"
_SCROLL_BOTTOM_DONE_JS = "() => window.innerHeight + window.scrollY >= document.body.scrollHeight"

_CONTAINER_PASSTHROUGH = frozenset(
    {
        "add_script_tag",
        "add_style_tag",
        "check",
        "click",
        "content",
        "dblclick",
        "dispatch_event",
        "fill",
        "focus",
        "get_attribute",
        "get_by_label",
        "get_by_role",
        "get_by_text",
        "hover",
        "inner_html",
        "inner_text",
        "input_value",
        "is_checked",
        "is_disabled",
        "is_enabled",
        "is_hidden",
        "is_visible",
        "locator",
        "press",
        "select_option",
        "set_content",
        "text_content",
        "title",
        "type",
        "uncheck",
        "url",
        "wait_for_load_state",
        "wait_for_timeout",
        "wait_for_url",
    }
)

_FRAME_PASSTHROUGH = _CONTAINER_PASSTHROUGH | {"is_detached", "name"}

_PAGE_PASSTHROUGH = _CONTAINER_PASSTHROUGH | {
    "add_init_script",
    "bring_to_front",
    "emulate_media",
    "expect_navigation",
    "expose_function",
    "is_closed",
    "keyboard",
    "mouse",
    "pdf",
    "route",
    "screenshot",
    "set_default_navigation_timeout",
    "set_default_timeout",
    "set_extra_http_headers",
    "set_viewport_size",
    "unroute",
    "viewport_size",
}


class PopupInfo:
    """Result holder for :meth:`PageWrapper.expect_popup`; ``await info.value`` gives the augmented popup."""

    __slots__ = ("_info", "_browser")

    def __init__(self, info: Any, browser: BrowserWrapper | None) -> None:
        self._info = info
        self._browser = browser

    @property
    def value(self) -> Awaitable[PageWrapper | None]:
        return self._resolve()

    async def _resolve(self) -> PageWrapper | None:
        return wrap_page(await self._info.value, self._browser)


class _ContainerWrapper(HandleWrapper):
    """Operations shared by pages and frames: DOM queries and text helpers."""

    __slots__ = ()

    def _element_owner(self) -> PageWrapper | FrameWrapper:
        return self  # type: ignore[return-value]

    async def query_selector(self, selector: str) -> ElementWrapper | None:
        return wrap_element(await self._handle.query_selector(selector), self._element_owner())

    async def query_selector_all(self, selector: str) -> list[ElementWrapper]:
        owner = self._element_owner()
        return [wrap_element(h, owner) for h in await self._handle.query_selector_all(selector)]

    async def text(self, selector: str) -> str:
        """Return the ``innerText`` of the first match for *selector*, ``""`` if none."""
        element = await self.query_selector(selector)
        return await element.text() if element is not None else ""

    async def clean_text(self, selector: str) -> str:
        return clean_whitespace(await self.text(selector)) or ""

    async def attr(self, selector: str, name: str) -> str:
        """Return attribute *name* of the first match for *selector*, ``""`` if either is missing."""
        element = await self.query_selector(selector)
        return await element.attr(name) if element is not None else ""

    async def href(self, selector: str) -> str | None:
        element = await self.query_selector(selector)
        return await element.href() if element is not None else None

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self._handle.evaluate(expression, unwrap(arg))

    async def evaluate_handle(self, expression: str, arg: Any = None) -> Any:
        js_handle = await self._handle.evaluate_handle(expression, unwrap(arg))
        element = js_handle.as_element()
        return wrap_element(element, self._element_owner()) if element is not None else js_handle


class FrameWrapper(_ContainerWrapper):
    """A frame inside a page. Element results are owned by this frame."""

    kind = "frame"
    PASSTHROUGH = _FRAME_PASSTHROUGH

    __slots__ = ("_page",)

    def __init__(self, handle: Any, page: PageWrapper | None = None) -> None:
        super().__init__(handle)
        self._page = page

    @property
    def page(self) -> PageWrapper | None:
        return self._page

    @property
    def parent_frame(self) -> FrameWrapper | None:
        return wrap_frame(self._handle.parent_frame, self._page)

    def child_frames(self) -> list[FrameWrapper]:
        return [wrap_frame(f, self._page) for f in self._handle.child_frames]

    async def wait_for_selector(self, selector: str, **options: Any) -> ElementWrapper | None:
        wait_options = self._page.policy.wait_options if self._page is not None else {}
        return wrap_element(await self._handle.wait_for_selector(selector, **merge(wait_options, options)), self)


class PageWrapper(_ContainerWrapper):
    """A browser tab bound to its owning :class:`BrowserWrapper`.

    Example::

        page = await browser.try_open_page("https://example.test/staff")
        if page is not None:
            for row in await page.query_selector_all("tr.person"):
                name = await row.clean_text("td.name")
            await page.close()
    """

    kind = "page"
    PASSTHROUGH = _PAGE_PASSTHROUGH

    __slots__ = ("_browser",)

    def __init__(self, handle: Any, browser: BrowserWrapper | None = None) -> None:
        super().__init__(handle)
        self._browser = browser

    @property
    def policy(self) -> SessionPolicy:
        if self._browser is None:
            return SessionPolicy()
        return self._browser.policy

    @property
    def _logger(self) -> logging.Logger:
        return self._browser.logger if self._browser is not None else logger

    def browser(self) -> BrowserWrapper | None:
        """The augmented browser that opened this page."""
        return self._browser

    # ------------------------------------------------------------------
    # Waits
    # ------------------------------------------------------------------

    async def wait_for_selector(self, selector: str, **options: Any) -> ElementWrapper | None:
        handle = await self._handle.wait_for_selector(selector, **merge(self.policy.wait_options, options))
        return wrap_element(handle, self)

    async def wait_for_xpath(self, xpath: str, **options: Any) -> ElementWrapper | None:
        return await self.wait_for_selector(f"xpath={xpath}", **options)

    async def wait_for_function(self, expression: str, *, arg: Any = None, **options: Any) -> Any:
        return await self._handle.wait_for_function(
            expression, arg=unwrap(arg), **merge(self.policy.wait_options, options)
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def maybe_clear_cookies(self) -> None:
        """Clear the page's cookies if the session policy says so."""
        if self.policy.clear_cookies_on_navigate:
            await self._handle.context.clear_cookies()

    async def _before_navigation(self, throttle_ms: int | None = None) -> None:
        if self._browser is not None:
            await self._browser.throttle(throttle_ms)
        await self.maybe_clear_cookies()

    async def goto(self, url: str, *, throttle_ms: int | None = None, **options: Any) -> Response | None:
        """Throttled ``Page.goto`` using the session's navigation defaults.

        Args:
            url: Address to load.
            throttle_ms: Override the session's minimum interval for this load.
            **options: Playwright ``goto`` options; these win over the defaults.
        """
        await self._before_navigation(throttle_ms)
        return await self._handle.goto(url, **merge(self.policy.navigation_options, options))

    async def go_back(self, **options: Any) -> Response | None:
        await self._before_navigation()
        return await self._handle.go_back(**merge(self.policy.navigation_options, options))

    async def go_forward(self, **options: Any) -> Response | None:
        await self._before_navigation()
        return await self._handle.go_forward(**merge(self.policy.navigation_options, options))

    async def reload(self, **options: Any) -> Response | None:
        await self._before_navigation()
        return await self._handle.reload(**merge(self.policy.navigation_options, options))

    async def click_and_navigate(self, element: ElementWrapper | Any, **options: Any) -> bool:
        """Click *element* and wait for the navigation it triggers.

        Returns:
            True on success, False if the click or navigation failed (most
            likely a navigation timeout). The failure is logged, not raised.
        """
        await self._before_navigation()
        try:
            async with self._handle.expect_navigation(**merge(self.policy.navigation_options, options)):
                await unwrap(element).click()
        except PlaywrightError as exc:
            self._logger.warning("click_and_navigate failed on %s: %s", self._handle.url, exc)
            return False
        return True

    async def full_url(self) -> str:
        """The current address including any ``#fragment``."""
        return await self._handle.evaluate("() => window.location.href")

    async def scroll_to_top(self) -> None:
        await self._handle.evaluate(_SCROLL_TOP_JS)
        await self.wait_for_function(_SCROLL_TOP_DONE_JS, polling=_SCROLL_POLLING_MS)

    async def scroll_to_bottom(self) -> None:
        await self._handle.evaluate(_SCROLL_BOTTOM_JS)
        await self.wait_for_function(_SCROLL_BOTTOM_DONE_JS, polling=_SCROLL_POLLING_MS)

    # ------------------------------------------------------------------
    # Frames and related pages
    # ------------------------------------------------------------------

    def frames(self) -> list[FrameWrapper]:
        return [wrap_frame(f, self) for f in self._handle.frames]

    @property
    def main_frame(self) -> FrameWrapper:
        return wrap_frame(self._handle.main_frame, self)

    def frame(self, name: str | None = None, *, url: Any = None) -> FrameWrapper | None:
        return wrap_frame(self._handle.frame(name=name, url=url), self)

    def find_frame(self, url_fragment: str) -> FrameWrapper | None:
        """Return the first frame whose URL contains *url_fragment*, or ``None``."""
        for frame in self._handle.frames:
            if url_fragment in (frame.url or ""):
                return wrap_frame(frame, self)
        return None

    async def opener(self) -> PageWrapper | None:
        return wrap_page(await self._handle.opener(), self._browser)

    @contextlib.asynccontextmanager
    async def expect_popup(self, **options: Any) -> AsyncIterator[PopupInfo]:
        """Wait for a popup opened while the block runs::

            async with page.expect_popup() as info:
                await page.click("a[target=_blank]")
            popup = await info.value
        """
        async with self._handle.expect_popup(**options) as info:
            yield PopupInfo(info, self._browser)

    async def close(self, **options: Any) -> None:
        """Close the page, clearing cookies first when configured so none leak to the next target.

        The page is closed even if clearing cookies fails; that error is then re-raised.
        """
        try:
            await self.maybe_clear_cookies()
        finally:
            await self._handle.close(**options)


def wrap_frame(handle: Any, page: PageWrapper | None = None) -> FrameWrapper | None:
    """Augment a raw ``Frame``. ``None`` stays ``None``; wrappers are returned unchanged."""
    if handle is None:
        return None
    if isinstance(handle, HandleWrapper):
        return handle  # type: ignore[return-value]
    return FrameWrapper(handle, page)


def wrap_page(handle: Any, browser: BrowserWrapper | None = None) -> PageWrapper | None:
    """Augment a raw ``Page``. ``None`` stays ``None``; wrappers are returned unchanged."""
    if handle is None:
        return None
    if isinstance(handle, HandleWrapper):
        return handle  # type: ignore[return-value]
    return PageWrapper(handle, browser)
