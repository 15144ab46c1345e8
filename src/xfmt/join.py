"""Join helpers - display the items of an iterable separated by a string."""

from __future__ import annotations

from typing import Any, Iterable

from xfmt.formatter import Displayable
from xfmt.sink import Sink, emit


class Join(Displayable):
    """Displays `items` with `sep` between them, each formatted with `spec`.

    The items are iterated every time the object is rendered, so a one-shot
    iterator renders once and then as empty.
    """

    def __init__(self, sep: str, items: Iterable[Any], spec: str = ""):
        self.sep = sep
        self.items = items
        self.spec = spec

    def render(self, sink: Sink) -> None:
        first = True
        for item in self.items:
            if not first:
                emit(sink, self.sep)
            first = False
            if not self.spec and isinstance(item, Displayable):
                item.render(sink)
            else:
                emit(sink, format(item, self.spec))

    def __repr__(self) -> str:
        return f"Join({self.sep!r}, {self.items!r}, spec={self.spec!r})"


def join(sep: str, iterable: Iterable[Any], spec: str = "", *, move: bool = False) -> Join:
    """Display the elements of `iterable` separated by `sep`.

    With `move=True` the elements are collected now, so the result can be
    rendered any number of times even from a generator.

    Example:
        >>> str(join(", ", [1, 2, 3], "02"))
        '01, 02, 03'
    """
    return Join(sep, tuple(iterable) if move else iterable, spec)


def join_values(sep: str, *values: Any, spec: str = "") -> Join:
    """Display the given values separated by `sep`."""
    return Join(sep, values, spec)
