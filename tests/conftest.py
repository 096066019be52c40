"""sitescrape test configuration — shared fixtures and fake Playwright handles.

The fakes are ``MagicMock``/``AsyncMock`` objects shaped like Playwright's async
API: coroutine methods are ``AsyncMock``, properties are plain attributes.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from sitescrape.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Fake engine handles
# ---------------------------------------------------------------------------


def _make_element(
    text: str = "",
    attrs: dict[str, str] | None = None,
    props: dict[str, Any] | None = None,
    children: dict[str, Any] | None = None,
) -> MagicMock:
    attrs = attrs or {}
    props = props or {}
    children = children or {}

    element = MagicMock(name="ElementHandle")
    element.inner_text = AsyncMock(return_value=text)
    element.get_attribute = AsyncMock(side_effect=lambda name: attrs.get(name))

    def get_property(name: str) -> MagicMock:
        prop_handle = MagicMock(name=f"JSHandle[{name}]")
        prop_handle.json_value = AsyncMock(return_value=props.get(name))
        return prop_handle

    element.get_property = AsyncMock(side_effect=get_property)
    element.query_selector = AsyncMock(side_effect=lambda selector: children.get(selector))
    element.query_selector_all = AsyncMock(side_effect=lambda selector: [v for k, v in children.items() if k == selector])
    element.evaluate = AsyncMock(return_value=None)
    element.click = AsyncMock()
    return element


def _make_page(url: str = "about:blank", elements: dict[str, Any] | None = None) -> MagicMock:
    elements = elements or {}

    page = MagicMock(name="Page")
    page.url = url

    async def goto(address: str, **options: Any) -> MagicMock:
        page.url = address
        return MagicMock(name="Response")

    page.goto = AsyncMock(side_effect=goto)
    page.go_back = AsyncMock(return_value=None)
    page.go_forward = AsyncMock(return_value=None)
    page.reload = AsyncMock(return_value=None)
    page.close = AsyncMock()
    page.route = AsyncMock()
    page.set_extra_http_headers = AsyncMock()
    page.evaluate = AsyncMock(return_value=None)
    page.wait_for_function = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock(side_effect=lambda selector, **_: elements.get(selector))
    page.query_selector = AsyncMock(side_effect=lambda selector: elements.get(selector))
    page.query_selector_all = AsyncMock(
        side_effect=lambda selector: list(elements.get(selector, [])) if isinstance(elements.get(selector), list) else []
    )
    page.context.clear_cookies = AsyncMock()
    page.context.new_cdp_session = AsyncMock(return_value=MagicMock(send=AsyncMock()))
    page.frames = []
    return page


def _make_browser(page_factory=None) -> MagicMock:
    """A fake ``Browser`` whose ``new_page`` opens pages in a single context."""
    page_factory = page_factory or _make_page
    context = MagicMock(name="BrowserContext")
    context.pages = []

    browser = MagicMock(name="Browser")
    browser.contexts = [context]
    browser.opened = []

    async def new_page(**options: Any) -> MagicMock:
        page = page_factory()
        browser.opened.append(page)
        context.pages.append(page)

        async def close(**_: Any) -> None:
            if page in context.pages:
                context.pages.remove(page)

        page.close = AsyncMock(side_effect=close)
        return page

    browser.new_page = AsyncMock(side_effect=new_page)
    browser.close = AsyncMock()
    return browser


@pytest.fixture()
def make_element():
    """Factory for fake ``ElementHandle`` objects."""
    return _make_element


@pytest.fixture()
def make_page():
    """Factory for fake ``Page`` objects; ``elements`` maps selector -> element (or list for ``query_selector_all``)."""
    return _make_page


@pytest.fixture()
def make_browser():
    """Factory for fake ``Browser`` objects tracking every page they opened in ``.opened``."""
    return _make_browser


@pytest.fixture()
def raw_browser():
    return _make_browser()
