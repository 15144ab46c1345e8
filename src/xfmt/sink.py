"""Sinks - the write-only destinations generated programs target.

A sink accepts chunks of text through `write()` and signals failure by
raising. Generated programs never buffer beyond merging adjacent literals at
generation time.
"""

from __future__ import annotations

import logging
from typing import Protocol, TextIO, runtime_checkable

from xfmt.errors import SinkWriteError

log = logging.getLogger(__name__)


@runtime_checkable
class Sink(Protocol):
    def write(self, chunk: str) -> object: ...


class StringSink:
    """Collects output in memory."""

    def __init__(self) -> None:
        self._parts: list[str] = []

    def write(self, chunk: str) -> int:
        self._parts.append(chunk)
        return len(chunk)

    def getvalue(self) -> str:
        return "".join(self._parts)


class StreamSink:
    """Writes to a text stream such as `sys.stdout`."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def write(self, chunk: str) -> int:
        try:
            return self.stream.write(chunk)
        except (OSError, ValueError) as exc:
            raise SinkWriteError(str(exc)) from exc

    def flush(self) -> None:
        self.stream.flush()


def emit(sink: Sink, chunk: str) -> None:
    """Write one chunk, turning I/O failures into `SinkWriteError`."""
    try:
        sink.write(chunk)
    except SinkWriteError:
        raise
    except (OSError, ValueError) as exc:
        log.debug("Sink %r rejected a %d character chunk", sink, len(chunk))
        raise SinkWriteError(str(exc)) from exc


class CheckedSink:
    """Sink handed to user code; every write goes through `emit`."""

    def __init__(self, sink: Sink):
        self.sink = sink

    def write(self, chunk: str) -> int:
        emit(self.sink, chunk)
        return len(chunk)

    def __repr__(self) -> str:
        return f"CheckedSink({self.sink!r})"


def checked(sink: Sink) -> Sink:
    """Wrap `sink` so I/O failures from direct writes raise `SinkWriteError`."""
    if isinstance(sink, CheckedSink):
        return sink
    return CheckedSink(sink)
