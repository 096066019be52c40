"""sitescrape exception hierarchy.

Every fault the framework raises (or wraps) belongs to the ``ScrapeError``
family so callers can match on a single base class. The one exception is
``HandleContractError``, which signals a bug in a handle wrapper class rather
than a runtime scraping failure.
"""

from __future__ import annotations

# Substrings Playwright uses when the page, context, browser or driver
# connection underneath a handle is gone.
_SESSION_CLOSED_MARKERS: tuple[str, ...] = (
    "Target closed",
    "Target page, context or browser has been closed",
    "Browser has been closed",
    "Browser closed",
    "Connection closed",
    "Session closed",
)


class ScrapeError(Exception):
    """Base exception for all sitescrape errors."""


class RecordError(ScrapeError):
    """Raised when a record fails validation or cannot be coerced into a ``Record``."""


class ProcessorError(ScrapeError):
    """Raised when a sink is misused (written before open, opened twice, ...)."""


class BlocklistError(ScrapeError):
    """Raised when an ad block list cannot be fetched.

    Attributes:
        title: Human-readable name of the block list.
        url: Address the list was fetched from.
    """

    def __init__(self, title: str, url: str, reason: str) -> None:
        self.title = title
        self.url = url
        super().__init__(f"Failed to fetch block list {title!r} from {url}: {reason}")


class SessionClosedError(ScrapeError):
    """Raised when the browser session backing a scraper has already been torn down.

    This is never swallowed by a recoverable boundary: nothing useful can
    happen on a dead session.
    """


class WatchdogTimeoutError(ScrapeError):
    """Raised when a scraper produced no record within the hard timeout.

    Attributes:
        timeout_ms: The configured hard timeout.
        scraper_name: Name of the scraper that stalled.
    """

    def __init__(self, timeout_ms: int, scraper_name: str = "") -> None:
        self.timeout_ms = timeout_ms
        self.scraper_name = scraper_name
        who = f" for scraper {scraper_name!r}" if scraper_name else ""
        super().__init__(f"Hard timeout of {timeout_ms}ms was hit{who}; bailing on the whole run.")


class HandleContractError(RuntimeError):
    """A handle wrapper shadows a pass-through member with a non-callable attribute."""


def is_session_closed(exc: BaseException) -> bool:
    """Return True if *exc* means the underlying browser session is gone."""
    if isinstance(exc, SessionClosedError):
        return True
    message = str(exc)
    return any(marker in message for marker in _SESSION_CLOSED_MARKERS)


def wrap_error(exc: BaseException, klass: type[ScrapeError] = ScrapeError, message: str | None = None) -> ScrapeError:
    """Wrap a foreign exception in *klass*, keeping the original as ``__cause__``.

    Exceptions that already belong to *klass* are returned unchanged.
    """
    if isinstance(exc, klass):
        return exc
    wrapped = klass(message or f"{type(exc).__name__}: {exc}")
    wrapped.__cause__ = exc
    return wrapped
