from __future__ import annotations

from enum import Enum
from typing import Tuple, Union

import msgspec


class CaptureMode(Enum):
    """How a formatter object holds the names its body refers to."""

    REFERENCE = "ref"
    MOVE = "move"


class FormatSpec(msgspec.Struct, frozen=True):
    """Parsed `[[fill]align][sign][z][#][0][width][grouping][.precision][type]`.

    `width` and `precision` hold either a literal int or the source text of a
    nested `{expr}` evaluated at render time.
    """

    fill: str | None = None
    align: str | None = None
    sign: str | None = None
    coerce_zero: bool = False
    alternate: bool = False
    zero: bool = False
    width: int | str | None = None
    grouping: str | None = None
    precision: int | str | None = None
    type: str | None = None

    @property
    def is_static(self) -> bool:
        return not isinstance(self.width, str) and not isinstance(self.precision, str)

    def to_string(self, width: object = None, precision: object = None) -> str:
        """Rebuild the host spec string, substituting dynamic width/precision."""
        parts = []
        if self.align is not None:
            parts.append((self.fill or "") + self.align)
        if self.sign is not None:
            parts.append(self.sign)
        if self.coerce_zero:
            parts.append("z")
        if self.alternate:
            parts.append("#")
        if self.zero:
            parts.append("0")
        if self.width is not None:
            parts.append(str(width if isinstance(self.width, str) else self.width))
        if self.grouping is not None:
            parts.append(self.grouping)
        if self.precision is not None:
            value = precision if isinstance(self.precision, str) else self.precision
            parts.append(f".{value}")
        if self.type is not None:
            parts.append(self.type)
        return "".join(parts)


class TemplateNode(msgspec.Struct, frozen=True, tag=True):
    """Base of every template item; the tag is the class name."""

    pass


class Literal(TemplateNode):
    text: str
    pos: int = 0


class Interpolation(TemplateNode):
    expr: str
    spec: FormatSpec | None = None
    conversion: str | None = None
    pos: int = 0


class Let(TemplateNode):
    """`let target = expr;` or `let target = [move] || { ... };`."""

    target: str
    expr: str = ""
    closure: Closure | None = None
    pos: int = 0


class If(TemplateNode):
    """`if cond { ... }`, or `if let pattern = cond { ... }` when `pattern` is set."""

    condition: str
    then_body: Template
    else_body: Template | None = None
    pattern: str | None = None
    pos: int = 0


class MatchArm(msgspec.Struct, frozen=True):
    pattern: str
    body: Template
    guard: str | None = None
    pos: int = 0


class Match(TemplateNode):
    scrutinee: str
    arms: Tuple[MatchArm, ...] = ()
    pos: int = 0


class For(TemplateNode):
    pattern: str
    iterable: str
    body: Template
    pos: int = 0


class Closure(TemplateNode):
    capture: CaptureMode
    body: Template
    pos: int = 0


class Escape(TemplateNode):
    """Raw host statements run with `param` bound to the sink."""

    param: str
    code: str
    pos: int = 0


TemplateItem = Union[Literal, Interpolation, Let, If, Match, For, Closure, Escape]


class Template(msgspec.Struct, frozen=True):
    """Ordered template items; `capture` applies when used as a formatter root."""

    items: Tuple[TemplateItem, ...] = ()
    capture: CaptureMode = CaptureMode.REFERENCE


def dump_json(template: Template, indent: int = 2) -> str:
    """Encode a template tree as JSON."""
    return msgspec.json.format(msgspec.json.encode(template), indent=indent).decode()
