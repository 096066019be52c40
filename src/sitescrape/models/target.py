"""Scrape targets: a bare URL string or a structure carrying a URL plus metadata."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, ConfigDict


class ScrapeTarget(BaseModel):
    """Structured, immutable target. Extra fields are kept as metadata.

    Example::

        ScrapeTarget(url="https://example.test/team", section="engineering")
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    url: str

    @property
    def metadata(self) -> dict[str, Any]:
        """Every field except ``url``."""
        return dict(self.model_extra or {})


Target = Union[str, Mapping[str, Any], ScrapeTarget]


def url_from_target(target: Any) -> str | None:
    """Return the URL for *target*.

    Strings are taken as the URL; mappings must carry a ``"url"`` key; any other
    object is asked for a ``url`` attribute. Returns ``None`` if there is none.
    """
    if target is None:
        return None
    if isinstance(target, str):
        return target
    if isinstance(target, Mapping):
        return target.get("url")
    return getattr(target, "url", None)
