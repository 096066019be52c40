"""Session policy: the immutable options governing one browser session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from sitescrape.settings.config import Settings

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]


class BlocklistSource(BaseModel):
    """An ad/tracker block list to fetch: a title for logs plus the list URL."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class ProxyConfig(BaseModel):
    """Upstream HTTP proxy. ``auth`` is ``USER:PASS`` for Basic proxy auth."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    auth: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.url)


class SessionPolicy(BaseModel):
    """Options for one session. Frozen: derive a new policy with :meth:`merged`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headless: bool = True
    sandboxed: bool = True
    slow_mo_ms: int = 0
    load_images: bool = True
    load_ads: bool = True
    rate_limit_ms: int = Field(default=0, ge=0)
    clear_cookies_on_navigate: bool = False
    clear_cache_on_launch: bool = False
    user_agent: str = ""
    navigation_timeout_ms: int = Field(default=60_000, ge=0)
    wait_timeout_ms: int = Field(default=30_000, ge=0)
    wait_until: WaitUntil = "load"
    hard_timeout_ms: int = Field(default=600_000, ge=0)
    viewport_width: int = 960
    viewport_height: int = 1200
    browser_console: bool = False
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> SessionPolicy:
        """Build a policy from resolved :class:`~sitescrape.settings.Settings`."""
        b = settings.browser
        return cls(
            headless=b.headless,
            sandboxed=b.sandbox,
            slow_mo_ms=b.slow_mo_ms,
            load_images=b.load_images,
            load_ads=b.load_ads,
            rate_limit_ms=settings.runner.rate_limit_ms,
            clear_cookies_on_navigate=b.clear_cookies,
            clear_cache_on_launch=b.clear_cache,
            user_agent=b.user_agent,
            navigation_timeout_ms=b.navigation_timeout_ms,
            wait_timeout_ms=b.wait_timeout_ms,
            wait_until=b.wait_until,
            hard_timeout_ms=settings.runner.hard_timeout_ms,
            viewport_width=b.viewport_width,
            viewport_height=b.viewport_height,
            browser_console=b.console,
            proxy=ProxyConfig(url=settings.proxy.url, auth=settings.proxy.auth),
        )

    def merged(self, overrides: dict[str, Any] | None) -> SessionPolicy:
        """Return a copy with *overrides* applied (validated; unknown keys rejected)."""
        if not overrides:
            return self
        data = self.model_dump()
        data.update(overrides)
        return SessionPolicy.model_validate(data)

    @property
    def navigation_options(self) -> dict[str, Any]:
        """Default keyword arguments for ``goto``/``go_back``/``go_forward``/``reload``."""
        return {"timeout": self.navigation_timeout_ms, "wait_until": self.wait_until}

    @property
    def wait_options(self) -> dict[str, Any]:
        """Default keyword arguments for ``wait_for_*`` calls."""
        return {"timeout": self.wait_timeout_ms}

    @property
    def viewport(self) -> dict[str, int]:
        return {"width": self.viewport_width, "height": self.viewport_height}
