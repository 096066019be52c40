"""Block-list download.

Lists are fetched one after another as raw text. Any failure aborts: a
partially built filter would silently let ads through, so callers treat
filter construction as fail-fast.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from sitescrape.exceptions import BlocklistError
from sitescrape.models.policy import BlocklistSource

_DEFAULT_TIMEOUT_SEC = 30.0


async def fetch_blocklists(
    sources: Iterable[BlocklistSource],
    *,
    client: httpx.AsyncClient | None = None,
    timeout_sec: float = _DEFAULT_TIMEOUT_SEC,
    logger: logging.Logger | None = None,
) -> list[str]:
    """Download every block list in *sources*, in order.

    Args:
        sources: Block lists to fetch.
        client: Optional shared client (closed by the caller). A private
            client is created and closed when omitted.
        timeout_sec: Per-request timeout for a private client.
        logger: Logger for progress messages.

    Returns:
        The raw text of each list, in the order given.

    Raises:
        BlocklistError: On the first transport or HTTP status failure.
    """
    log = logger or logging.getLogger(__name__)
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout_sec, follow_redirects=True)

    texts: list[str] = []
    try:
        for source in sources:
            log.info("Downloading block list %s...", source.title)
            try:
                resp = await http.get(source.url)
                resp.raise_for_status()
            except httpx.HTTPError as exc:
                raise BlocklistError(source.title, source.url, str(exc) or type(exc).__name__) from exc
            texts.append(resp.text)
            log.debug("Block list %s: %d bytes", source.title, len(resp.text))
    finally:
        if owns_client:
            await http.aclose()

    log.info("All %d block lists downloaded.", len(texts))
    return texts
