"""Small helpers shared by scrapers and the framework."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")


def listify(value: Any) -> list[Any]:
    """Return a list no matter what: ``None`` -> ``[]``, scalar -> ``[scalar]``.

    Tuples and lists are copied into a new list; strings and mappings count as
    single values.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def boolify(value: Any, default: bool) -> bool:
    """Return ``bool(value)`` unless *value* is ``None``, in which case *default*."""
    return default if value is None else bool(value)


def merge(*mappings: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge mappings left to right into a new dict; ``None`` entries are skipped."""
    merged: dict[str, Any] = {}
    for mapping in mappings:
        if mapping:
            merged.update(mapping)
    return merged


def clean_whitespace(text: str | None) -> str | None:
    """Collapse every run of whitespace to one space and trim the ends.

    >>> clean_whitespace("  A\\tB\\n  C  ")
    'A B C'
    """
    if not text:
        return text
    return _WHITESPACE_RE.sub(" ", text).strip()


def email_from_mailto(mailto: str | None) -> str | None:
    """Extract the address from a ``mailto:`` href, dropping any query string."""
    if not mailto:
        return None
    mailto = mailto.lower()
    if not mailto.startswith("mailto:"):
        return None
    address = mailto[len("mailto:"):].split("?")[0]
    return address or None


def phone_from_tel(tel: str | None) -> str | None:
    """Extract the number from a ``tel:`` href."""
    if not tel or not tel.startswith("tel:"):
        return None
    return tel[len("tel:"):] or None


async def sleep_ms(delay_ms: float) -> None:
    """Suspend the current task for *delay_ms* milliseconds."""
    if delay_ms > 0:
        await asyncio.sleep(delay_ms / 1000)
