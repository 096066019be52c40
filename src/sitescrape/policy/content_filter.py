"""Request-level content filtering (image and ad blocking).

The filter is built once per run and consulted for every intercepted
request. Once built it is read-only, so one instance may be shared by every
session in the process.

Usage::

    content_filter = await build_content_filter(policy, settings.blocklists.sources)
    if content_filter and content_filter.should_block(url, "image"):
        await route.abort()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import httpx
from adblockparser import AdblockRules

from sitescrape.models.policy import BlocklistSource, SessionPolicy
from sitescrape.policy.blocklists import fetch_blocklists

# Playwright resource types -> adblockparser option names
_RESOURCE_OPTIONS: dict[str, str] = {
    "document": "document",
    "stylesheet": "stylesheet",
    "image": "image",
    "media": "media",
    "script": "script",
    "xhr": "xmlhttprequest",
    "fetch": "xmlhttprequest",
    "websocket": "websocket",
    "ping": "ping",
    "other": "other",
}
_OPTION_NAMES = frozenset(_RESOURCE_OPTIONS.values())


def _rule_lines(texts: Iterable[str]) -> list[str]:
    """Split raw block-list text into rule lines, dropping blanks, comments and headers."""
    lines: list[str] = []
    for text in texts:
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith(("!", "[")):
                continue
            lines.append(line)
    return lines


class AdMatcher:
    """URL matcher over Adblock Plus filter rules."""

    def __init__(self, rules: Sequence[str]) -> None:
        self._rule_count = len(rules)
        self._rules = AdblockRules(list(rules), skip_unsupported_rules=True)

    @classmethod
    def from_texts(cls, texts: Iterable[str]) -> AdMatcher:
        """Parse one or more raw block lists into a single matcher."""
        return cls(_rule_lines(texts))

    @property
    def rule_count(self) -> int:
        return self._rule_count

    def matches(self, url: str, resource_type: str | None = None) -> bool:
        """Return True if *url* is an ad or tracker according to the loaded rules."""
        option = _RESOURCE_OPTIONS.get(resource_type or "")
        options = {name: name == option for name in _OPTION_NAMES} if option else None
        return bool(self._rules.should_block(url, options))


class ContentFilter:
    """Decides whether an intercepted request should be aborted.

    Args:
        load_images: When False, every ``image`` request is blocked.
        ad_matcher: Optional matcher; matching requests are blocked.
    """

    def __init__(self, *, load_images: bool = True, ad_matcher: AdMatcher | None = None) -> None:
        self._load_images = load_images
        self._ad_matcher = ad_matcher

    @property
    def ad_matcher(self) -> AdMatcher | None:
        return self._ad_matcher

    @property
    def blocks_images(self) -> bool:
        return not self._load_images

    @property
    def blocks_ads(self) -> bool:
        return self._ad_matcher is not None

    @property
    def active(self) -> bool:
        """True if the filter could block anything at all."""
        return self.blocks_images or self.blocks_ads

    def should_block(self, url: str, resource_type: str | None = None) -> bool:
        """Return True if the request for *url* should be aborted."""
        if self.blocks_images and resource_type == "image":
            return True
        if self._ad_matcher is not None and self._ad_matcher.matches(url, resource_type):
            return True
        return False

    def for_policy(self, policy: SessionPolicy) -> ContentFilter | None:
        """Derive the filter one session needs, sharing this filter's ad matcher.

        Returns ``None`` if that session blocks nothing.
        """
        return filter_for_policy(policy, self._ad_matcher)


def filter_for_policy(policy: SessionPolicy, ad_matcher: AdMatcher | None = None) -> ContentFilter | None:
    """Return the filter *policy* asks for, or ``None`` if it blocks nothing."""
    matcher = None if policy.load_ads else ad_matcher
    content_filter = ContentFilter(load_images=policy.load_images, ad_matcher=matcher)
    return content_filter if content_filter.active else None


async def build_content_filter(
    policy: SessionPolicy,
    sources: Iterable[BlocklistSource],
    *,
    client: httpx.AsyncClient | None = None,
    timeout_sec: float = 30.0,
    logger: logging.Logger | None = None,
) -> ContentFilter | None:
    """Build the content filter a policy asks for.

    Returns ``None`` when the policy blocks nothing. Block lists are only
    downloaded when ads are disabled.

    Raises:
        BlocklistError: If any block list cannot be fetched.
    """
    log = logger or logging.getLogger(__name__)
    ad_matcher: AdMatcher | None = None
    if not policy.load_ads:
        texts = await fetch_blocklists(sources, client=client, timeout_sec=timeout_sec, logger=log)
        log.info("Processing block lists...")
        ad_matcher = AdMatcher.from_texts(texts)
        log.info("Ad matcher ready (%d rules)", ad_matcher.rule_count)

    return filter_for_policy(policy, ad_matcher)
