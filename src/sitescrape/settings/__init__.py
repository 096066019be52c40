"""Layered settings (TOML files + SITESCRAPE_* environment variables)."""

from sitescrape.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
