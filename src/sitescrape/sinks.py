"""Record sinks: where validated records go.

A sink is opened once before any scraper runs, receives records through
:meth:`Sink.process`, and is closed once after every scraper finished.
Subclasses implement the ``on_open`` / ``write`` / ``on_close`` hooks; the
base class enforces the lifecycle and raises :class:`ProcessorError` on misuse.

Built-in sinks:

* ``ConsoleSink`` writes one JSON line per record (the runner's default).
* ``InMemorySink`` collects records in a list, useful for tests.
* ``DelegatingSink`` fans every record out to child sinks.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from typing import TextIO

from sitescrape.exceptions import ProcessorError
from sitescrape.models.record import Record

logger = logging.getLogger(__name__)


class Sink:
    """Base sink. The hooks are no-ops, so the base class silently discards records."""

    def __init__(self) -> None:
        self._opened = False
        self._closed = False

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def is_open(self) -> bool:
        return self._opened and not self._closed

    async def open(self) -> None:
        if self._opened:
            raise ProcessorError(f"Attempted to open {self.name} twice.")
        self._opened = True
        await self.on_open()

    async def process(self, record: Record) -> None:
        if not self.is_open:
            state = "a closed" if self._closed else "an un-opened"
            raise ProcessorError(f"Attempted to write to {state} {self.name}.")
        await self.write(record)

    async def close(self) -> None:
        if not self.is_open:
            state = "an already closed" if self._closed else "an un-opened"
            raise ProcessorError(f"Attempted to close {state} {self.name}.")
        self._closed = True
        await self.on_close()

    # Hooks ------------------------------------------------------------

    async def on_open(self) -> None:
        pass

    async def write(self, record: Record) -> None:
        pass

    async def on_close(self) -> None:
        pass


class ConsoleSink(Sink):
    """Emit each record as a JSON line on *stream* (standard output by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._stream = stream

    async def write(self, record: Record) -> None:
        stream = self._stream or sys.stdout
        stream.write(record.to_json() + "\n")
        stream.flush()


class InMemorySink(Sink):
    """Collect records in a list."""

    def __init__(self) -> None:
        super().__init__()
        self.records: list[Record] = []

    async def write(self, record: Record) -> None:
        self.records.append(record)


class DelegatingSink(Sink):
    """Forward every record to each child sink, in order."""

    def __init__(self, sinks: Sink | Iterable[Sink] | None = None) -> None:
        super().__init__()
        if isinstance(sinks, Sink):
            sinks = [sinks]
        self.sinks: list[Sink] = list(sinks or [])

    async def on_open(self) -> None:
        for sink in self.sinks:
            await sink.open()

    async def write(self, record: Record) -> None:
        for sink in self.sinks:
            await sink.process(record)

    async def on_close(self) -> None:
        for sink in self.sinks:
            await sink.close()
        logger.debug("Closed %d delegated sinks", len(self.sinks))
