"""Handle augmentation layer over Playwright's async API.

``BrowserWrapper`` is the root; every browser, page, frame and element handle
reachable from it comes back augmented (see :mod:`sitescrape.browser.handles`).
"""

from sitescrape.browser.browser import BrowserWrapper, wrap_browser
from sitescrape.browser.element import ElementWrapper, wrap_element
from sitescrape.browser.handles import HandleWrapper, unwrap
from sitescrape.browser.page import FrameWrapper, PageWrapper, PopupInfo, wrap_frame, wrap_page

__all__ = [
    "BrowserWrapper",
    "ElementWrapper",
    "FrameWrapper",
    "HandleWrapper",
    "PageWrapper",
    "PopupInfo",
    "unwrap",
    "wrap_browser",
    "wrap_element",
    "wrap_frame",
    "wrap_page",
]
