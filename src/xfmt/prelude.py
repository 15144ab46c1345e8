"""Printing and formatting shortcuts.

Each function takes template source followed by the names it reads, either
as keyword bindings or as a `namespace` mapping:

    >>> from xfmt import prelude
    >>> prelude.format("{a} + {b}", a=1, b=2)
    '1 + 2'

The module shadows the builtin `print` and `format`; import it as a module
rather than with `*`.
"""

from __future__ import annotations

import sys
from typing import Any, Mapping, TextIO

from xfmt.api import fmt
from xfmt.formatter import Formatter
from xfmt.sink import StreamSink

__all__ = [
    "print",
    "println",
    "eprint",
    "eprintln",
    "write",
    "writeln",
    "format",
    "format_args",
]


def _to_stream(
    stream: TextIO,
    source: str,
    namespace: Mapping[str, Any] | None,
    bindings: dict[str, Any],
    newline: bool,
) -> None:
    sink = StreamSink(stream)
    fmt(source, namespace, **bindings).render(sink)
    if newline:
        sink.write("\n")


def print(source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any) -> None:
    """Render to standard output."""
    _to_stream(sys.stdout, source, namespace, bindings, newline=False)


def println(
    source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any
) -> None:
    """Render to standard output followed by a newline."""
    _to_stream(sys.stdout, source, namespace, bindings, newline=True)


def eprint(source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any) -> None:
    _to_stream(sys.stderr, source, namespace, bindings, newline=False)


def eprintln(
    source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any
) -> None:
    _to_stream(sys.stderr, source, namespace, bindings, newline=True)


def write(
    stream: TextIO,
    source: str,
    /,
    namespace: Mapping[str, Any] | None = None,
    **bindings: Any,
) -> None:
    """Render into any text stream; write failures raise `SinkWriteError`."""
    _to_stream(stream, source, namespace, bindings, newline=False)


def writeln(
    stream: TextIO,
    source: str,
    /,
    namespace: Mapping[str, Any] | None = None,
    **bindings: Any,
) -> None:
    _to_stream(stream, source, namespace, bindings, newline=True)


def format(source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any) -> str:
    """Render to a new string."""
    return str(fmt(source, namespace, **bindings))


def format_args(
    source: str, /, namespace: Mapping[str, Any] | None = None, **bindings: Any
) -> Formatter:
    """Return the formatter object without rendering it."""
    return fmt(source, namespace, **bindings)
