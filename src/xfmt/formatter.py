"""Formatter objects - reusable, displayable results of a compiled template."""

from __future__ import annotations

import builtins
from abc import ABC, abstractmethod
from collections import ChainMap
from typing import TYPE_CHECKING, Any, Callable

from xfmt.sink import Sink, StringSink, checked

if TYPE_CHECKING:
    from xfmt.compiler.spec import Program


class Displayable(ABC):
    """Something that renders itself into a sink.

    `str()` renders into a fresh `StringSink`; `format()` pads or truncates
    that text with the host's string formatting rules.
    """

    @abstractmethod
    def render(self, sink: Sink) -> None: ...

    def __str__(self) -> str:
        sink = StringSink()
        self.render(sink)
        return sink.getvalue()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class Formatter(Displayable):
    """A generated program bound to the names its body reads.

    For a by-move formatter `scope` is an owned snapshot; for a by-reference
    formatter it is a live view of the scope it was created in, and the
    referenced values must outlive the formatter.
    """

    def __init__(self, program: Program, scope: ChainMap, globals_: dict | None = None):
        self.program = program
        self.scope = scope
        self.globals = globals_ if globals_ is not None else new_globals()

    @property
    def captures(self) -> dict[str, Any]:
        """Names visible to the body that it actually reads."""
        return {
            name: self.scope[name]
            for name in sorted(self.program.free_names)
            if name in self.scope
        }

    def render(self, sink: Sink) -> None:
        self.program.run(sink, self.scope.new_child(), self.globals)

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.program.free_names))
        return f"<Formatter {self.program.capture.value} reads=[{names}]>"


class FnDisplay(Displayable):
    def __init__(self, callback: Callable[[Sink], object]):
        self.callback = callback

    def render(self, sink: Sink) -> None:
        self.callback(checked(sink))


def display_fn(callback: Callable[[Sink], object]) -> FnDisplay:
    """Return a displayable object whose rendering is `callback(sink)`.

    Example:
        >>> str(display_fn(lambda f: f.write("display")))
        'display'
    """
    return FnDisplay(callback)


def new_globals() -> dict:
    return {"__builtins__": builtins}
