"""Compiler - transforms a template AST into a write-program."""

from __future__ import annotations

import logging

from xfmt.ast.node import (
    Closure,
    Escape,
    For,
    If,
    Interpolation,
    Let,
    Literal,
    Match,
    Template,
    TemplateItem,
)
from xfmt.compiler import host
from xfmt.compiler.scope import Frame
from xfmt.compiler.spec import (
    Action,
    Bind,
    Block,
    Branch,
    Condition,
    Dispatch,
    Loop,
    MakeClosure,
    Program,
    SpecTemplate,
    Splice,
    WriteLiteral,
    WriteValue,
)
from xfmt.errors import TemplateSyntaxError

log = logging.getLogger(__name__)


class Compiler:
    """Compiles a `Template` into a `Program`.

    Host code is compiled here, once, so every host syntax error surfaces at
    load time with the position of the template item it belongs to.
    """

    def __init__(self, merge_literals: bool = True):
        self.merge_literals = merge_literals

    def compile(self, template: Template, source: str = "") -> Program:
        """Compile a template tree.

        Args:
            template: Parsed template.
            source: Template source text, used for error positions.

        Returns:
            The program; its `free_names` are the names the template reads
            without binding them itself.
        """
        frame = Frame()
        actions = self._compile_block(template, frame, source)
        program = Program(
            actions=actions,
            free_names=frozenset(frame.free),
            capture=template.capture,
            source=source,
        )
        log.debug(
            "Compiled template into %d actions reading %s",
            len(actions),
            sorted(program.free_names),
        )
        return program

    def _compile_block(self, template: Template, frame: Frame, source: str) -> Block:
        actions: list[Action] = []
        pending: list[str] = []

        def flush() -> None:
            text = "".join(pending)
            pending.clear()
            if text:
                actions.append(WriteLiteral(text))

        for item in template.items:
            if isinstance(item, Literal):
                pending.append(item.text)
                if not self.merge_literals:
                    flush()
                continue
            flush()
            actions.append(self._compile_item(item, frame, source))
        flush()
        return tuple(actions)

    def _compile_item(self, item: TemplateItem, frame: Frame, source: str) -> Action:
        if isinstance(item, Interpolation):
            return self._compile_interpolation(item, frame, source)
        if isinstance(item, Let):
            return self._compile_let(item, frame, source)
        if isinstance(item, If):
            return self._compile_if(item, frame, source)
        if isinstance(item, Match):
            return self._compile_match(item, frame, source)
        if isinstance(item, For):
            return self._compile_for(item, frame, source)
        if isinstance(item, Closure):
            return MakeClosure(self._compile_closure(item, frame, source))
        if isinstance(item, Escape):
            return self._compile_escape(item, frame, source)
        raise TypeError(f"Unknown template item: {type(item).__name__}")

    def _expression(self, text: str, pos: int, frame: Frame, source: str) -> host.HostCode:
        code = host.compile_expression(text, pos, source)
        frame.reference(code.loads)
        return code

    def _compile_interpolation(
        self, item: Interpolation, frame: Frame, source: str
    ) -> WriteValue:
        expr = self._expression(item.expr, item.pos, frame, source)
        spec = None
        if item.spec is not None:
            if item.spec.is_static:
                spec = SpecTemplate(item.spec, static=item.spec.to_string())
            else:
                width = precision = None
                if isinstance(item.spec.width, str):
                    width = self._expression(item.spec.width, item.pos, frame, source)
                if isinstance(item.spec.precision, str):
                    precision = self._expression(
                        item.spec.precision, item.pos, frame, source
                    )
                spec = SpecTemplate(item.spec, width=width, precision=precision)
        return WriteValue(expr, spec=spec, conversion=item.conversion)

    def _compile_let(self, item: Let, frame: Frame, source: str) -> Action:
        if item.closure is not None:
            name = host.simple_name(item.target)
            if name is None:
                raise TemplateSyntaxError(
                    item.pos,
                    f"a closure must be bound to a plain name, not {item.target!r}",
                    source,
                )
            program = self._compile_closure(item.closure, frame, source)
            frame.bind([name])
            return MakeClosure(program, name=name)

        expr = self._expression(item.expr, item.pos, frame, source)
        name, target = self._target(item.target, item.pos, frame, source)
        return Bind(expr, name=name, target=target)

    def _target(
        self, pattern: str, pos: int, frame: Frame, source: str
    ) -> tuple[str | None, host.HostCode | None]:
        """Compile a binding pattern and bind its names into `frame`."""
        name = host.simple_name(pattern)
        if name is not None:
            frame.bind([name])
            return name, None
        target = host.compile_target(host.strip_reference(pattern), pos, source)
        # Subscript and attribute targets read their base object.
        frame.reference(target.loads)
        frame.bind(target.stores)
        return None, target

    def _compile_if(self, item: If, frame: Frame, source: str) -> Branch:
        arms: list[tuple[Condition, Block]] = []
        current: If | None = item
        otherwise: Block = ()
        while current is not None:
            expr = self._expression(current.condition, current.pos, frame, source)
            child = frame.child()
            if current.pattern is None:
                condition = Condition(expr)
            else:
                condition = self._let_condition(current, expr, frame, child, source)
            body = self._compile_block(current.then_body, child, source)
            arms.append((condition, body))
            else_body = current.else_body
            current = None
            if else_body is None:
                break
            if len(else_body.items) == 1 and isinstance(else_body.items[0], If):
                current = else_body.items[0]
            else:
                otherwise = self._compile_block(else_body, frame.child(), source)
        return Branch(tuple(arms), otherwise=otherwise)

    def _let_condition(
        self, item: If, expr: host.HostCode, frame: Frame, child: Frame, source: str
    ) -> Condition:
        """`if let`: a one-arm match whose captures are bound in the block."""
        matcher, (arm,) = host.compile_match(
            [(host.strip_reference(item.pattern), None, item.pos)], item.pos, source
        )
        frame.reference(arm.loads - arm.stores)
        child.bind(arm.stores)
        return Condition(expr, pattern=item.pattern, matcher=matcher, arm=arm)

    def _compile_match(self, item: Match, frame: Frame, source: str) -> Action:
        subject = self._expression(item.scrutinee, item.pos, frame, source)
        if not item.arms:
            # Evaluated for its side effects only; nothing can match.
            return Dispatch(subject, _NO_MATCH, ())
        matcher, arms = host.compile_match(
            [(host.strip_reference(arm.pattern), arm.guard, arm.pos) for arm in item.arms],
            item.pos,
            source,
        )
        bodies: list[Block] = []
        for arm, compiled in zip(item.arms, arms):
            # Value patterns (`Color.RED`) and guards read from the enclosing scope.
            frame.reference(compiled.loads - compiled.stores)
            child = frame.child()
            child.bind(compiled.stores)
            bodies.append(self._compile_block(arm.body, child, source))
        return Dispatch(subject, matcher, tuple(bodies), arms=arms)

    def _compile_for(self, item: For, frame: Frame, source: str) -> Loop:
        iterable = self._expression(item.iterable, item.pos, frame, source)
        child = frame.child()
        name, target = self._target(item.pattern, item.pos, child, source)
        body = self._compile_block(item.body, child, source)
        return Loop(iterable, body, name=name, target=target)

    def _compile_closure(self, item: Closure, frame: Frame, source: str) -> Program:
        """Compile a nested formatter; its free names are read by the enclosing block."""
        inner = Frame()
        actions = self._compile_block(item.body, inner, source)
        frame.reference(inner.free)
        return Program(
            actions=actions,
            free_names=frozenset(inner.free),
            capture=item.capture,
            source=source,
        )

    def _compile_escape(self, item: Escape, frame: Frame, source: str) -> Splice:
        if item.param != "_":
            frame.bind([item.param])
        code = host.compile_statement(item.code, item.pos, source)
        frame.reference(code.loads - code.stores)
        frame.bind(code.stores)
        return Splice(item.param, code)


_NO_MATCH = host.compile_statement("pass", 0, "")

