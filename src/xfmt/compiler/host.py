"""Host code - Python expressions and statements carried by templates.

Template host code is opaque to xfmt: it is compiled once with the builtin
`compile()` and evaluated against the runtime scope. Bytecode is inspected only
to learn which names a piece of code reads and binds, which is what closure
capture needs.
"""

from __future__ import annotations

import dis
import keyword
import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from types import CodeType
from typing import Any, Iterable

from xfmt.errors import TemplateSyntaxError

FILENAME = "<xfmt>"

# Reserved names used to hand values to compiled host code.
ITEM = "__xfmt_item__"
SUBJECT = "__xfmt_subject__"
ARM = "__xfmt_arm__"

_LOADS = frozenset(
    {"LOAD_NAME", "LOAD_GLOBAL", "LOAD_FROM_DICT_OR_GLOBALS", "LOAD_FROM_DICT_OR_DEREF"}
)
_STORES = frozenset({"STORE_NAME", "DELETE_NAME"})


@dataclass(frozen=True)
class HostCode:
    """A compiled piece of host code and the names it reads and binds."""

    source: str
    code: CodeType
    loads: frozenset[str]
    stores: frozenset[str]
    nested: bool

    def evaluate(self, scope: MutableMapping[str, Any], globals_: dict) -> Any:
        return eval(self.code, self._globals(scope, globals_), scope)

    def execute(self, scope: MutableMapping[str, Any], globals_: dict) -> None:
        exec(self.code, self._globals(scope, globals_), scope)

    def _globals(self, scope: Mapping[str, Any], globals_: dict) -> dict:
        # Nested functions (lambdas, generator expressions) resolve free names
        # through globals only, so they need the scope flattened into them.
        if self.nested:
            return {**globals_, **scope}
        return globals_


def compile_expression(text: str, pos: int, source: str) -> HostCode:
    """Compile an expression; parenthesized so it may span several lines."""
    return _compile(f"({text}\n)", "eval", text, pos, source, "expression")


def compile_statement(text: str, pos: int, source: str) -> HostCode:
    return _compile(text, "exec", text, pos, source, "statement")


def compile_target(target: str, pos: int, source: str) -> HostCode:
    """Compile `target = <item>` for destructuring let and for patterns."""
    return _compile(f"{target} = {ITEM}", "exec", target, pos, source, "assignment target")


def compile_match(
    arms: Iterable[tuple[str, str | None, int]], pos: int, source: str
) -> tuple[HostCode, tuple[HostCode, ...]]:
    """Compile match arms into one host `match` statement.

    The statement stores the index of the first arm that matches in `ARM`,
    leaving its captures behind in the local mapping. Also returns each arm
    compiled on its own, for the names that arm reads and binds.
    """
    lines = [f"match {SUBJECT}:"]
    compiled: list[HostCode] = []
    for index, (pattern, guard, arm_pos) in enumerate(arms):
        case = f"    case ({pattern})"
        if guard is not None:
            case += f" if ({guard})"
        lines.append(case + ":")
        lines.append(f"        {ARM} = {index}")
        # Compile the arm alone first so errors point at the right arm.
        arm = _compile(
            "\n".join([lines[0], lines[-2], lines[-1]]),
            "exec",
            pattern,
            arm_pos,
            source,
            "match pattern",
        )
        compiled.append(arm)
    matcher = _compile("\n".join(lines), "exec", "match", pos, source, "match")
    return matcher, tuple(compiled)


def simple_name(target: str) -> str | None:
    """Return `target` when it is a plain identifier (with `&` markers removed)."""
    name = strip_reference(target)
    if name.isidentifier() and not keyword.iskeyword(name):
        return name
    return None


_REFERENCE = re.compile(r"(^|[(\[{,|:]\s*)&+\s*")


def strip_reference(pattern: str) -> str:
    """Drop `&` reference markers; Python values are always references.

    Markers are removed at the start of the pattern and after any opening
    bracket, comma, `|` or `:` inside it, so `(&k, &v)` becomes `(k, v)`.
    """
    return _REFERENCE.sub(r"\1", pattern).strip()


def names_used(code: CodeType) -> tuple[frozenset[str], frozenset[str], bool]:
    """Return the names `code` reads, the names it binds, and whether it nests code."""
    loads: set[str] = set()
    stores: set[str] = set()
    nested = False
    for instruction in dis.get_instructions(code):
        if instruction.opname in _LOADS:
            loads.add(instruction.argval)
        elif instruction.opname in _STORES:
            stores.add(instruction.argval)
    for const in code.co_consts:
        if isinstance(const, CodeType):
            nested = True
            inner_loads, _, _ = names_used(const)
            loads.update(inner_loads)
    return frozenset(loads), frozenset(stores), nested


def _compile(
    code_text: str, mode: str, text: str, pos: int, source: str, what: str
) -> HostCode:
    try:
        code = compile(code_text, FILENAME, mode)
    except SyntaxError as exc:
        raise TemplateSyntaxError(
            pos, f"invalid Python {what} {text!r}: {exc.msg}", source
        ) from exc
    loads, stores, nested = names_used(code)
    internal = {ITEM, SUBJECT, ARM}
    return HostCode(
        source=text,
        code=code,
        loads=loads - internal,
        stores=stores - internal,
        nested=nested,
    )
