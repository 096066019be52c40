"""Configuration loader for sitescrape using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (SITESCRAPE_* with __ for nesting)
  3. settings.local.toml
  4. settings.<env>.toml
  5. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sitescrape.models.policy import BlocklistSource

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("SITESCRAPE_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "SITESCRAPE_ENV"
DEFAULT_ENV = "local"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class BrowserSettings(BaseSettings):
    """Playwright browser and page settings."""

    model_config = SettingsConfigDict(env_prefix="SITESCRAPE_BROWSER__")

    headless: bool = True
    sandbox: bool = True
    slow_mo_ms: int = 0
    load_images: bool = True
    load_ads: bool = True
    clear_cookies: bool = False
    clear_cache: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    navigation_timeout_ms: int = 60_000
    wait_timeout_ms: int = 30_000
    wait_until: str = "load"  # commit | domcontentloaded | load | networkidle
    viewport_width: int = 960
    viewport_height: int = 1200
    console: bool = False


class ProxySettings(BaseSettings):
    """Upstream HTTP proxy for the browser."""

    model_config = SettingsConfigDict(env_prefix="SITESCRAPE_PROXY__")

    url: str = ""
    auth: str = ""  # USER:PASS, sent as Proxy-Authorization


class RunnerSettings(BaseSettings):
    """Orchestration settings."""

    model_config = SettingsConfigDict(env_prefix="SITESCRAPE_RUNNER__")

    rate_limit_ms: int = 0
    hard_timeout_ms: int = 600_000
    escalate_errors: bool = True


class BlocklistSettings(BaseSettings):
    """Ad/tracker block lists fetched when ads are disabled."""

    model_config = SettingsConfigDict(env_prefix="SITESCRAPE_BLOCKLISTS__")

    sources: list[BlocklistSource] = Field(default_factory=list)
    fetch_timeout_sec: float = 30.0


class LoggingSettings(BaseSettings):
    """Process logging configuration."""

    model_config = SettingsConfigDict(env_prefix="SITESCRAPE_LOGGING__")

    level: str = "INFO"
    json_format: bool = False


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root sitescrape settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="SITESCRAPE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    proxy: ProxySettings = Field(default_factory=ProxySettings)
    runner: RunnerSettings = Field(default_factory=RunnerSettings)
    blocklists: BlocklistSettings = Field(default_factory=BlocklistSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files before env var overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")

        # Merge: defaults < env-specific < local < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
