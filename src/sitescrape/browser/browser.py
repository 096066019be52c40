"""Augmented ``Browser``: page factory, throttle owner and request filter host."""

from __future__ import annotations

import base64
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from sitescrape.browser.handles import HandleWrapper
from sitescrape.browser.page import PageWrapper, wrap_page
from sitescrape.exceptions import SessionClosedError, is_session_closed
from sitescrape.models.policy import SessionPolicy
from sitescrape.policy.throttle import Throttle

if TYPE_CHECKING:
    from playwright.async_api import ConsoleMessage, Page, Route

    from sitescrape.policy.content_filter import ContentFilter

console_logger = logging.getLogger("sitescrape.browser.console")

_BROWSER_PASSTHROUGH = frozenset(
    {
        "browser_type",
        "close",
        "is_connected",
        "new_browser_cdp_session",
        "start_tracing",
        "stop_tracing",
        "version",
    }
)


class BrowserWrapper(HandleWrapper):
    """The root of the augmented object graph for one session.

    Args:
        handle: Playwright ``Browser``.
        policy: Session options applied to every page this browser opens.
        content_filter: Request filter installed on new pages (``None`` = no routing).
        throttle: Page-load throttle; built from ``policy.rate_limit_ms`` when omitted.
        logger: Logger for page-level diagnostics.
    """

    kind = "browser"
    PASSTHROUGH = _BROWSER_PASSTHROUGH

    __slots__ = ("_policy", "_content_filter", "_throttle", "_logger")

    def __init__(
        self,
        handle: Any,
        policy: SessionPolicy | None = None,
        *,
        content_filter: ContentFilter | None = None,
        throttle: Throttle | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(handle)
        self._policy = policy or SessionPolicy()
        self._content_filter = content_filter
        self._logger = logger or logging.getLogger(__name__)
        self._throttle = throttle or Throttle(self._policy.rate_limit_ms, logger=self._logger)

    @property
    def policy(self) -> SessionPolicy:
        return self._policy

    @property
    def content_filter(self) -> ContentFilter | None:
        return self._content_filter

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    async def throttle(self, override_ms: int | None = None) -> None:
        """Wait until the next page load is allowed."""
        await self._throttle.wait(override_ms)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def new_page(self) -> PageWrapper:
        """Open a configured tab.

        The page gets the policy's viewport and user agent, request routing
        when a content filter is active, the proxy auth header, console
        relaying, a crash handler and (optionally) a disabled cache. If any of
        that setup fails the half-configured tab is closed before the error
        propagates.
        """
        policy = self._policy
        raw = await self._handle.new_page(
            viewport=policy.viewport,
            user_agent=policy.user_agent or None,
            ignore_https_errors=policy.proxy.enabled,
        )
        try:
            await self._configure_page(raw)
        except BaseException:
            await self._discard_page(raw)
            raise
        return wrap_page(raw, self)

    async def _configure_page(self, raw: Page) -> None:
        policy = self._policy
        if self._content_filter is not None:
            await raw.route("**/*", self._route_request)

        if policy.proxy.auth:
            # RFC 7617 section 2
            token = base64.b64encode(policy.proxy.auth.encode("utf-8")).decode("ascii")
            await raw.set_extra_http_headers({"Proxy-Authorization": f"Basic {token}"})

        if policy.browser_console:
            raw.on("console", self._console_relay(raw))

        raw.on("crash", self._on_crash)

        if policy.clear_cache_on_launch:
            await self._disable_cache(raw)

    async def _discard_page(self, raw: Page) -> None:
        try:
            await raw.close()
        except PlaywrightError as exc:
            self._logger.warning("Could not close partially opened page: %s", exc)

    async def try_open_page(self, url: str, **options: Any) -> PageWrapper | None:
        """Open a new page and load *url*.

        Returns ``None`` if the page cannot be created or the load fails (for
        example a navigation timeout); a partially opened page is closed
        first. Accepts the same options as :meth:`PageWrapper.goto`.

        Raises:
            SessionClosedError: If the browser itself is gone.
        """
        try:
            page = await self.new_page()
        except PlaywrightError as exc:
            if is_session_closed(exc):
                raise SessionClosedError(str(exc)) from exc
            self._logger.error("try_open_page: failed to open a page for %s: %s", url, exc)
            return None

        try:
            await page.goto(url, **options)
        except PlaywrightError as exc:
            self._logger.error("try_open_page: failed to load %s: %s; closing.", url, exc)
            await self._close_quietly(page, url)
            if is_session_closed(exc):
                raise SessionClosedError(str(exc)) from exc
            return None

        return page

    def pages(self) -> list[PageWrapper]:
        """Every open page across the browser's contexts, oldest first."""
        return [wrap_page(p, self) for context in self._handle.contexts for p in context.pages]

    def current_page(self) -> PageWrapper | None:
        """The most recently opened page, or ``None``."""
        pages = self.pages()
        return pages[-1] if pages else None

    async def close_current_page(self) -> bool:
        """Close the most recently opened page. Returns False if there was none."""
        page = self.current_page()
        if page is None:
            return False
        await page.close()
        return True

    # ------------------------------------------------------------------
    # Page hooks
    # ------------------------------------------------------------------

    async def _route_request(self, route: Route) -> None:
        request = route.request
        try:
            if self._content_filter is not None and self._content_filter.should_block(
                request.url, request.resource_type
            ):
                await route.abort()
            else:
                await route.continue_()
        except PlaywrightError as exc:
            # Page went away while the request was in flight.
            self._logger.debug("Routing %s failed: %s", request.url, exc)

    def _console_relay(self, raw: Page) -> Callable[[ConsoleMessage], Awaitable[None]]:
        async def relay(message: ConsoleMessage) -> None:
            try:
                text = " ".join([str(await arg.json_value()) for arg in message.args])
            except PlaywrightError:
                text = message.text
            console_logger.info("Browser [%s]: %s", raw.url, text)

        return relay

    async def _on_crash(self, raw: Page) -> None:
        self._logger.error("Page %s crashed; closing it.", raw.url)
        try:
            await raw.close()
        except PlaywrightError as exc:
            self._logger.warning("Could not close crashed page %s: %s", raw.url, exc)

    async def _disable_cache(self, raw: Page) -> None:
        try:
            cdp = await raw.context.new_cdp_session(raw)
            await cdp.send("Network.setCacheDisabled", {"cacheDisabled": True})
        except PlaywrightError as exc:
            self._logger.warning("Could not disable the browser cache: %s", exc)

    async def _close_quietly(self, page: PageWrapper, url: str) -> None:
        try:
            await page.close()
        except PlaywrightError as exc:
            self._logger.warning("try_open_page: failed to close %s: %s", url, exc)


def wrap_browser(
    handle: Any,
    policy: SessionPolicy | None = None,
    *,
    content_filter: ContentFilter | None = None,
    throttle: Throttle | None = None,
    logger: logging.Logger | None = None,
) -> BrowserWrapper | None:
    """Augment a raw Playwright ``Browser``. ``None`` stays ``None``; wrappers are returned unchanged."""
    if handle is None:
        return None
    if isinstance(handle, HandleWrapper):
        return handle  # type: ignore[return-value]
    return BrowserWrapper(handle, policy, content_filter=content_filter, throttle=throttle, logger=logger)
