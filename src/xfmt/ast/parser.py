"""Parser - recursive descent from template source to a `Template` tree."""

from __future__ import annotations

import keyword
import logging
import textwrap

from xfmt.ast.format_spec import parse_interpolation
from xfmt.ast.node import (
    CaptureMode,
    Closure,
    Escape,
    For,
    If,
    Let,
    Literal,
    Match,
    MatchArm,
    Template,
    TemplateItem,
)
from xfmt.ast.scanner import Scanner, Token, TokenKind

log = logging.getLogger(__name__)


class Parser:
    """Parses template source into an immutable `Template`.

    A keyword construct is only recognized where a new item may start; the
    same words inside expression spans or host code are left alone.
    """

    def parse(self, source: str) -> Template:
        """Parse a whole template.

        A leading `move` that is not followed by `|` makes the template
        capture by move when it is turned into a formatter object.

        Raises:
            TemplateSyntaxError: on the first grammar error found.
        """
        scanner = Scanner(source)
        capture = CaptureMode.REFERENCE
        if scanner.peek_keyword("move"):
            saved = scanner.pos
            scanner.next_token()
            if scanner.peek_char() == "|":
                scanner.pos = saved
            else:
                capture = CaptureMode.MOVE

        items = self._parse_items(scanner, stop=(TokenKind.EOF,))
        log.debug("Parsed template into %d top-level items", len(items))
        return Template(items=items, capture=capture)

    def _parse_items(
        self,
        scanner: Scanner,
        stop: tuple[TokenKind, ...],
        opened_at: int | None = None,
    ) -> tuple[TemplateItem, ...]:
        """Parse items until one of the `stop` tokens (left unconsumed)."""
        items: list[TemplateItem] = []
        while True:
            token = scanner.peek_token()
            if token.kind in stop:
                return tuple(items)
            if token.kind is TokenKind.EOF:
                if TokenKind.RPAREN in stop:
                    raise scanner.error("unclosed '(' group", opened_at)
                raise scanner.error("unclosed '{' block", opened_at)
            scanner.next_token()
            if token.kind is TokenKind.LPAREN:
                # A parenthesized group is spliced into the enclosing block.
                items.extend(
                    self._parse_items(scanner, stop=(TokenKind.RPAREN,), opened_at=token.pos)
                )
                scanner.expect(")", "expected ')'")
                continue
            items.append(self._parse_item(scanner, token))

    def _parse_item(self, scanner: Scanner, token: Token) -> TemplateItem:
        kind = token.kind
        if kind is TokenKind.LITERAL:
            return Literal(token.text, pos=token.pos)
        if kind is TokenKind.SPAN:
            return parse_interpolation(scanner.source, token)
        if kind is TokenKind.PIPE:
            return self._parse_pipe(scanner, token.pos, move=False)
        if kind is TokenKind.KEYWORD:
            if token.text == "let":
                return self._parse_let(scanner, token.pos)
            if token.text == "if":
                return self._parse_if(scanner, token.pos)
            if token.text == "match":
                return self._parse_match(scanner, token.pos)
            if token.text == "for":
                return self._parse_for(scanner, token.pos)
            if token.text == "move":
                return self._parse_move(scanner, token.pos)
            raise scanner.error(f"'{token.text}' without a matching 'if'", token.pos)
        if kind is TokenKind.NAME:
            raise scanner.error(
                f"unexpected name {token.text!r}; wrap host expressions in braces",
                token.pos,
            )
        if kind is TokenKind.RBRACE:
            raise scanner.error("unbalanced '}'", token.pos)
        if kind is TokenKind.RPAREN:
            raise scanner.error("unbalanced ')'", token.pos)
        raise scanner.error(f"unexpected {token.text!r}", token.pos)

    def _parse_block(self, scanner: Scanner, header: str, header_pos: int) -> Template:
        """Parse `{ items }` following a control-flow header."""
        if scanner.peek_char() != "{":
            raise scanner.error(f"missing block after {header}", header_pos)
        opened_at = scanner.expect("{", "expected '{'")
        items = self._parse_items(scanner, stop=(TokenKind.RBRACE,), opened_at=opened_at)
        scanner.expect("}", "expected '}'")
        return Template(items=items)

    def _parse_let(self, scanner: Scanner, pos: int) -> Let:
        target = scanner.read_raw(stops=("=", ";", "{", "}"))
        if target.stop != "=":
            raise scanner.error("expected '=' after let target", target.pos)
        if not target.text:
            raise scanner.error("missing let target", target.pos)
        scanner.expect("=", "expected '='")

        if scanner.peek_keyword("move") or scanner.peek_char() == "|":
            token = scanner.next_token()
            if token.kind is TokenKind.KEYWORD:
                closure = self._parse_move(scanner, token.pos)
            else:
                closure = self._parse_pipe(scanner, token.pos, move=False)
            if not isinstance(closure, Closure):
                raise scanner.error("only closures can be bound with let", token.pos)
            body = closure.body.items
            if len(body) == 1 and isinstance(body[0], Escape):
                # `move |f| stmt;` already consumed the terminating ';'.
                scanner.accept(";")
            else:
                scanner.expect(";", "expected ';' after let closure")
            return Let(target.text, closure=closure, pos=pos)

        value = scanner.read_raw(stops=(";", "}"))
        if value.stop != ";":
            raise scanner.error("expected ';' after let expression", value.pos)
        if not value.text:
            raise scanner.error("missing let expression", value.pos)
        scanner.expect(";", "expected ';'")
        return Let(target.text, expr=value.text, pos=pos)

    def _parse_if(self, scanner: Scanner, pos: int) -> If:
        pattern = None
        if scanner.peek_keyword("let"):
            scanner.next_token()
            raw = scanner.read_raw(stops=("=", "{", "}"))
            if raw.stop != "=":
                raise scanner.error("expected '=' after 'if let' pattern", raw.pos)
            if not raw.text:
                raise scanner.error("missing pattern after 'if let'", raw.pos)
            scanner.expect("=", "expected '='")
            pattern = raw.text

        condition = scanner.read_raw(stops=("{", "}"))
        if not condition.text:
            raise scanner.error("missing condition after 'if'", condition.pos)
        then_body = self._parse_block(scanner, f"expression: {condition.text}", condition.pos)

        else_body = None
        if scanner.peek_keyword("else"):
            scanner.next_token()
            if scanner.peek_keyword("if"):
                nested_pos = scanner.next_token().pos
                else_body = Template(items=(self._parse_if(scanner, nested_pos),))
            else:
                else_body = self._parse_block(scanner, "'else'", pos)
        return If(
            condition.text, then_body, else_body=else_body, pattern=pattern, pos=pos
        )

    def _parse_match(self, scanner: Scanner, pos: int) -> Match:
        scrutinee = scanner.read_raw(stops=("{", "}"))
        if not scrutinee.text:
            raise scanner.error("missing expression after 'match'", scrutinee.pos)
        if scanner.peek_char() != "{":
            raise scanner.error(
                f"missing block after expression: {scrutinee.text}", scrutinee.pos
            )
        opened_at = scanner.expect("{", "expected '{'")

        arms: list[MatchArm] = []
        while not scanner.accept("}"):
            if scanner.at_end():
                raise scanner.error("unclosed 'match' block", opened_at)
            arms.append(self._parse_arm(scanner))
        return Match(scrutinee.text, arms=tuple(arms), pos=pos)

    def _parse_arm(self, scanner: Scanner) -> MatchArm:
        pattern = scanner.read_raw(stops=("=>", "}"), words=("if",))
        if not pattern.text:
            raise scanner.error("missing match pattern", pattern.pos)

        guard = None
        if pattern.stop == "if":
            scanner.accept("if")
            guard_raw = scanner.read_raw(stops=("=>", "}"))
            if not guard_raw.text:
                raise scanner.error("missing guard after 'if'", guard_raw.pos)
            guard = guard_raw.text
            if guard_raw.stop != "=>":
                raise scanner.error("match arm missing '=>'", guard_raw.pos)
        elif pattern.stop != "=>":
            raise scanner.error("match arm missing '=>'", pattern.pos)
        scanner.expect("=>", "match arm missing '=>'")

        if scanner.peek_char() == "{":
            body = self._parse_block(scanner, "'=>'", pattern.pos)
            scanner.accept(",")
        else:
            items = self._parse_items(
                scanner, stop=(TokenKind.COMMA, TokenKind.RBRACE), opened_at=pattern.pos
            )
            scanner.accept(",")
            body = Template(items=items)
        return MatchArm(pattern.text, body, guard=guard, pos=pattern.pos)

    def _parse_for(self, scanner: Scanner, pos: int) -> For:
        pattern = scanner.read_raw(stops=("{", "}"), words=("in",))
        if pattern.stop != "in":
            raise scanner.error("'for' without 'in'", pattern.pos)
        if not pattern.text:
            raise scanner.error("missing loop pattern", pattern.pos)
        scanner.accept("in")
        iterable = scanner.read_raw(stops=("{", "}"))
        if not iterable.text:
            raise scanner.error("missing iterable after 'in'", iterable.pos)
        body = self._parse_block(scanner, f"expression: {iterable.text}", iterable.pos)
        return For(pattern.text, iterable.text, body, pos=pos)

    def _parse_move(self, scanner: Scanner, pos: int) -> Closure:
        token = scanner.next_token()
        if token.kind is not TokenKind.PIPE:
            raise scanner.error("'move' must be followed by a closure '|...|'", token.pos)
        return self._parse_pipe(scanner, pos, move=True)  # type: ignore[return-value]

    def _parse_pipe(self, scanner: Scanner, pos: int, move: bool) -> Closure | Escape:
        """Parse what follows an opening `|`: a closure or an escape hatch."""
        capture = CaptureMode.MOVE if move else CaptureMode.REFERENCE
        param = None
        if not scanner.accept("|"):
            name = scanner.read_name("expected a parameter name or '|'")
            if keyword.iskeyword(name.text):
                raise scanner.error(f"{name.text!r} cannot be a parameter", name.pos)
            param = name.text
            scanner.expect("|", "expected '|' after closure parameter")

        if param is None:
            if scanner.peek_char() != "{":
                raise scanner.error("closure without parameter needs a '{ ... }' body")
            body = self._parse_block(scanner, "'||'", pos)
            return Closure(capture, body, pos=pos)

        escape = Escape(param, self._parse_raw_statement(scanner), pos=pos)
        if not move:
            return escape
        return Closure(capture, Template(items=(escape,)), pos=pos)

    def _parse_raw_statement(self, scanner: Scanner) -> str:
        """Read `{ statements }` or a single statement ended by `;`."""
        if scanner.peek_char() == "{":
            span = scanner.read_span()
            return textwrap.dedent(span.text.strip("\n")).strip()

        statement = scanner.read_raw(stops=(";",))
        if statement.stop != ";":
            raise scanner.error("expected ';' after escape statement", statement.pos)
        if not statement.text:
            raise scanner.error("empty escape statement", statement.pos)
        scanner.expect(";", "expected ';'")
        return statement.text


def parse_template(source: str) -> Template:
    """Parse template source text and return its `Template`."""
    return Parser().parse(source)
