"""sitescrape — structured record extraction on top of Playwright."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("sitescrape")
except Exception:
    __version__ = "0.0.0"
