"""xfmt Exceptions

Custom exceptions raised while loading and running templates.
"""

from __future__ import annotations


class XfmtError(Exception):
    """Base exception for all xfmt errors."""

    pass


class TemplateSyntaxError(XfmtError):
    """Raised when template source is malformed.

    Always raised while the template is loaded (scanning, parsing or host
    compilation), never while a generated program runs.
    """

    def __init__(self, position: int, message: str, source: str | None = None):
        self.position = position
        self.message = message
        self.source = source
        super().__init__(self._describe())

    @property
    def line(self) -> int:
        """1-based line of the offending position (1 when unknown)."""
        if self.source is None:
            return 1
        return self.source.count("\n", 0, self.position) + 1

    @property
    def column(self) -> int:
        """1-based column of the offending position."""
        if self.source is None:
            return self.position + 1
        start = self.source.rfind("\n", 0, self.position) + 1
        return self.position - start + 1

    def excerpt(self) -> str:
        """Return the offending source line with a caret under the position."""
        if self.source is None:
            return ""
        start = self.source.rfind("\n", 0, self.position) + 1
        end = self.source.find("\n", self.position)
        if end == -1:
            end = len(self.source)
        return self.source[start:end] + "\n" + " " * (self.column - 1) + "^"

    def _describe(self) -> str:
        if self.source is None:
            return f"{self.message} (at offset {self.position})"
        return f"{self.message} (line {self.line}, column {self.column})"


class SinkWriteError(XfmtError):
    """Raised when a sink fails to accept a chunk of output.

    Aborts the running program; output already written is kept.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Sink write failed: {message}")
