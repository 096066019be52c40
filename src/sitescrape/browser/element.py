"""Augmented ``ElementHandle``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sitescrape.browser.handles import HandleWrapper, unwrap
from sitescrape.utils import clean_whitespace

if TYPE_CHECKING:
    from sitescrape.browser.page import FrameWrapper, PageWrapper

_ELEMENT_PASSTHROUGH = frozenset(
    {
        "bounding_box",
        "check",
        "click",
        "dblclick",
        "dispatch_event",
        "dispose",
        "fill",
        "focus",
        "get_attribute",
        "get_property",
        "hover",
        "inner_html",
        "inner_text",
        "input_value",
        "is_checked",
        "is_disabled",
        "is_editable",
        "is_enabled",
        "is_hidden",
        "is_visible",
        "json_value",
        "press",
        "screenshot",
        "scroll_into_view_if_needed",
        "select_option",
        "select_text",
        "set_checked",
        "set_input_files",
        "tap",
        "text_content",
        "type",
        "uncheck",
        "wait_for_element_state",
    }
)


class ElementWrapper(HandleWrapper):
    """An element handle with text/property/attribute helpers.

    ``owner`` is the page or frame the element was found in; child elements
    share it.
    """

    kind = "element"
    PASSTHROUGH = _ELEMENT_PASSTHROUGH

    __slots__ = ("_owner",)

    def __init__(self, handle: Any, owner: PageWrapper | FrameWrapper | None = None) -> None:
        super().__init__(handle)
        self._owner = owner

    @property
    def owner(self) -> PageWrapper | FrameWrapper | None:
        return self._owner

    async def query_selector(self, selector: str) -> ElementWrapper | None:
        return wrap_element(await self._handle.query_selector(selector), self._owner)

    async def query_selector_all(self, selector: str) -> list[ElementWrapper]:
        return [wrap_element(h, self._owner) for h in await self._handle.query_selector_all(selector)]

    async def _target(self, selector: str | None) -> ElementWrapper | None:
        if not selector:
            return self
        return await self.query_selector(selector)

    async def text(self, selector: str | None = None) -> str:
        """Return the element's ``innerText`` (or that of the first *selector* match), ``""`` if missing."""
        target = await self._target(selector)
        if target is None:
            return ""
        return (await target._handle.inner_text()) or ""

    async def clean_text(self, selector: str | None = None) -> str:
        """Like :meth:`text`, with whitespace collapsed and trimmed."""
        return clean_whitespace(await self.text(selector)) or ""

    async def prop(self, name: str, selector: str | None = None) -> Any:
        """Return the value of DOM property *name*, or ``None`` if there is no such element."""
        target = await self._target(selector)
        if target is None:
            return None
        prop_handle = await target._handle.get_property(name)
        if prop_handle is None:
            return None
        return await prop_handle.json_value()

    async def set_prop(self, name: str, value: Any) -> None:
        await self._handle.evaluate("(element, [name, value]) => { element[name] = value; }", [name, value])

    async def attr(self, selector: str, name: str | None = None) -> str:
        """Return an attribute as text. Always a string, ``""`` when absent.

        ``attr("class")`` reads this element; ``attr("a", "href")`` reads the
        first match for ``a``, the same order as the page-level helper.
        """
        if name is None:
            selector, name = "", selector
        target = await self._target(selector)
        if target is None:
            return ""
        return (await target._handle.get_attribute(name)) or ""

    async def href(self, selector: str | None = None) -> str | None:
        """Return the resolved absolute URL of the element's ``href``."""
        target = await self._target(selector)
        if target is None:
            return None
        return await target.prop("href")

    async def parent_node(self) -> ElementWrapper | None:
        js_handle = await self._handle.evaluate_handle("(element) => element.parentElement")
        return wrap_element(js_handle.as_element(), self._owner)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self._handle.evaluate(expression, unwrap(arg))

    async def evaluate_handle(self, expression: str, arg: Any = None) -> Any:
        """Evaluate in the page with this element as the first argument.

        Element results come back augmented; other JS handles are returned as is.
        """
        js_handle = await self._handle.evaluate_handle(expression, unwrap(arg))
        element = js_handle.as_element()
        return wrap_element(element, self._owner) if element is not None else js_handle

    def as_element(self) -> ElementWrapper:
        return self


def wrap_element(handle: Any, owner: PageWrapper | FrameWrapper | None = None) -> ElementWrapper | None:
    """Augment a raw ``ElementHandle``. ``None`` stays ``None``; wrappers are returned unchanged."""
    if handle is None:
        return None
    if isinstance(handle, HandleWrapper):
        return handle  # type: ignore[return-value]
    return ElementWrapper(handle, owner)
