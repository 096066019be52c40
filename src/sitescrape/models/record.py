"""Records: the unit of data a scraper emits.

A ``Record`` is a plain mapping of field name to value with a single
``validate()`` hook. Subclasses add their own invariants; the runner calls
``validate()`` exactly once before handing the record to a sink, and routes
by the record's concrete class name (``Record.kind``).
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from sitescrape.exceptions import RecordError


class Record(dict):
    """A single data record, capable of validating itself.

    Example::

        class Listing(Record):
            def validate(self) -> None:
                if not self.get("price"):
                    raise RecordError("listing has no price")
    """

    @property
    def kind(self) -> str:
        """Routing key for sink lookup: the concrete class name."""
        return type(self).__name__

    def validate(self) -> None:
        """Raise :class:`RecordError` if the record is invalid. The base record accepts anything."""

    def to_dict(self) -> dict[str, Any]:
        return dict(self)

    def to_json(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return json.dumps(self, default=str, ensure_ascii=False)

    def __repr__(self) -> str:
        return f"{self.kind}({dict.__repr__(self)})"


def coerce_record(item: Any) -> Record:
    """Adopt *item* as a :class:`Record`.

    Records pass through untouched. Mappings, pydantic models and dataclass
    instances become a base ``Record`` holding their fields. Anything else is
    rejected with :class:`RecordError`.
    """
    if isinstance(item, Record):
        return item
    if isinstance(item, Mapping):
        return Record(item)
    if isinstance(item, BaseModel):
        return Record(item.model_dump())
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return Record(dataclasses.asdict(item))
    raise RecordError(f"Cannot build a record from {type(item).__name__}: {item!r}")
