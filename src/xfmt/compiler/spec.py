"""Compiler IR spec - the write-program a template is generated into.

A `Program` is an ordered tuple of write actions. Running it walks the actions
in order against a sink and a runtime scope (a `ChainMap` whose first map is
the current block's frame).
"""

from __future__ import annotations

from collections import ChainMap
from dataclasses import dataclass, field
from typing import Any, Tuple, Union

from xfmt.ast.node import CaptureMode, FormatSpec
from xfmt.compiler.host import ARM, ITEM, SUBJECT, HostCode
from xfmt.formatter import Displayable, Formatter
from xfmt.sink import Sink, checked, emit

CONVERSIONS = {"r": repr, "s": str, "a": ascii}


@dataclass(frozen=True)
class SpecTemplate:
    """A format specifier whose width/precision may be computed at render time."""

    spec: FormatSpec
    width: HostCode | None = None
    precision: HostCode | None = None
    static: str | None = None

    def resolve(self, scope: ChainMap, globals_: dict) -> str:
        if self.static is not None:
            return self.static
        width = self.width.evaluate(scope, globals_) if self.width else None
        precision = self.precision.evaluate(scope, globals_) if self.precision else None
        return self.spec.to_string(width=width, precision=precision)


@dataclass(frozen=True)
class WriteLiteral:
    text: str

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        emit(sink, self.text)


@dataclass(frozen=True)
class WriteValue:
    """Evaluate an expression and write it through the host `format()`."""

    expr: HostCode
    spec: SpecTemplate | None = None
    conversion: str | None = None

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        value = self.expr.evaluate(scope, globals_)
        if self.conversion is not None:
            value = CONVERSIONS[self.conversion](value)
        spec = self.spec.resolve(scope, globals_) if self.spec else ""
        if not spec and isinstance(value, Displayable):
            value.render(sink)
            return
        emit(sink, format(value, spec))


@dataclass(frozen=True)
class Bind:
    """`let`: evaluate once and bind into the current block frame."""

    expr: HostCode
    name: str | None = None
    target: HostCode | None = None

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        assign(scope, self.expr.evaluate(scope, globals_), self.name, self.target, globals_)


@dataclass(frozen=True)
class MakeClosure:
    """Build a formatter object; bind it to `name` or write it in place."""

    program: Program
    name: str | None = None

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        formatter = self.program.bind(scope, globals_)
        if self.name is not None:
            scope[self.name] = formatter
        else:
            formatter.render(sink)


@dataclass(frozen=True)
class Condition:
    """An `if` test: a plain expression, or `let pattern = expr` when `matcher` is set."""

    expr: HostCode
    pattern: str | None = None
    matcher: HostCode | None = None
    arm: HostCode | None = None

    def test(self, scope: ChainMap, globals_: dict) -> dict[str, Any] | None:
        """Return the bindings to run the block with, or None when the test fails."""
        value = self.expr.evaluate(scope, globals_)
        if self.matcher is None:
            return {} if value else None
        matched = match_subject(self.matcher, (self.arm,), value, scope, globals_)
        return None if matched is None else matched[1]


@dataclass(frozen=True)
class Branch:
    """`if` / `else if` / `else`: the first passing condition's block runs."""

    arms: Tuple[Tuple[Condition, Block], ...]
    otherwise: Block = ()

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        for condition, body in self.arms:
            bindings = condition.test(scope, globals_)
            if bindings is not None:
                run_block(body, sink, scope.new_child(bindings), globals_)
                return
        run_block(self.otherwise, sink, scope.new_child(), globals_)


@dataclass(frozen=True)
class Dispatch:
    """`match`: the first arm whose pattern and guard match runs."""

    subject: HostCode
    matcher: HostCode
    bodies: Tuple[Block, ...]
    arms: Tuple[HostCode, ...] = ()

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        value = self.subject.evaluate(scope, globals_)
        matched = match_subject(self.matcher, self.arms, value, scope, globals_)
        if matched is None:
            return
        arm, bindings = matched
        run_block(self.bodies[arm], sink, scope.new_child(bindings), globals_)


@dataclass(frozen=True)
class Loop:
    """`for`: run the body once per element, each in a fresh frame."""

    iterable: HostCode
    body: Block
    name: str | None = None
    target: HostCode | None = None

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        for item in self.iterable.evaluate(scope, globals_):
            frame = scope.new_child()
            assign(frame, item, self.name, self.target, globals_)
            run_block(self.body, sink, frame, globals_)


@dataclass(frozen=True)
class Splice:
    """Escape hatch: run raw host statements with `param` bound to the sink."""

    param: str
    code: HostCode

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        if self.param != "_":
            scope[self.param] = checked(sink)
        self.code.execute(scope, globals_)


Action = Union[WriteLiteral, WriteValue, Bind, MakeClosure, Branch, Dispatch, Loop, Splice]
Block = Tuple[Action, ...]


@dataclass(frozen=True)
class Program:
    """Complete write-program for one template."""

    actions: Block
    free_names: frozenset[str] = frozenset()
    capture: CaptureMode = CaptureMode.REFERENCE
    source: str = field(default="", compare=False)

    def run(self, sink: Sink, scope: ChainMap, globals_: dict) -> None:
        run_block(self.actions, sink, scope, globals_)

    def bind(self, scope: ChainMap, globals_: dict) -> Formatter:
        """Create a formatter over `scope` according to the capture mode."""
        if self.capture is CaptureMode.MOVE:
            owned = {name: scope[name] for name in self.free_names if name in scope}
            return Formatter(self, ChainMap(owned), globals_)
        return Formatter(self, scope, globals_)


def run_block(actions: Block, sink: Sink, scope: ChainMap, globals_: dict) -> None:
    for action in actions:
        action.run(sink, scope, globals_)


def assign(
    scope: ChainMap,
    value: Any,
    name: str | None,
    target: HostCode | None,
    globals_: dict,
) -> None:
    """Bind `value` into the first map of `scope` by name or by a compiled target."""
    if name is not None:
        scope[name] = value
        return
    if target is None:
        raise TypeError("assign() needs a name or a compiled target")
    scope[ITEM] = value
    try:
        target.execute(scope, globals_)
    finally:
        del scope[ITEM]


def match_subject(
    matcher: HostCode,
    arms: Tuple[HostCode, ...],
    value: Any,
    scope: ChainMap,
    globals_: dict,
) -> tuple[int, dict[str, Any]] | None:
    """Run a compiled `match` over `value`.

    Returns the index of the winning arm with the names its own pattern
    bound, or None. Captures left behind by earlier arms whose guard failed
    are dropped.
    """
    captures: dict[str, Any] = {SUBJECT: value}
    matcher.execute(ChainMap(captures, scope), globals_)
    arm = captures.get(ARM)
    if arm is None:
        return None
    stores = arms[arm].stores
    return arm, {name: captures[name] for name in stores if name in captures}
