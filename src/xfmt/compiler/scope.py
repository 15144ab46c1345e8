"""Generation-time scopes.

Each template block gets a frame holding the names bound since the block
began. Names read but bound in no enclosing frame are free names of the
program; they are what a closure captures.
"""

from __future__ import annotations

from typing import Iterable


class Frame:
    """Names bound in one template block, chained to the enclosing block."""

    def __init__(self, parent: Frame | None = None):
        self.parent = parent
        self.bound: set[str] = set()
        self.free: set[str] = set() if parent is None else parent.free

    def child(self) -> Frame:
        return Frame(self)

    def bind(self, names: Iterable[str]) -> None:
        self.bound.update(names)

    def is_bound(self, name: str) -> bool:
        frame: Frame | None = self
        while frame is not None:
            if name in frame.bound:
                return True
            frame = frame.parent
        return False

    def reference(self, names: Iterable[str]) -> None:
        """Record reads; unbound names become free names of the program."""
        for name in names:
            if not self.is_bound(name):
                self.free.add(name)
