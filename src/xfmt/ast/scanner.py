"""Scanner - splits template source into tokens.

Tokens are produced on demand for the parser. At positions where a new
template item may start, `next_token()` recognizes literals, brace-delimited
expression spans, keywords and punctuation. Host code between template
punctuation (conditions, patterns, statements) is taken verbatim with
`read_raw()`, which tracks `()[]{}` nesting and skips string literals so that
delimiters inside them do not count.
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from enum import Enum

from xfmt.errors import TemplateSyntaxError

KEYWORDS = frozenset({"let", "if", "else", "match", "for", "move"})

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_NUMBER = re.compile(
    r"0[xX](?:_?[0-9a-fA-F])+|0[oO](?:_?[0-7])+|0[bB](?:_?[01])+"
    r"|\d(?:_?\d)*(?:\.\d(?:_?\d)*)?(?:[eE][+-]?\d(?:_?\d)*)?"
)
_STRING_PREFIXES = frozenset({"r", "u", "b", "f", "rb", "br", "fr", "rf"})

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {")": "(", "]": "[", "}": "{"}

# Single-character stops that must not swallow the first half of an operator.
_OPERATOR_STOPS = frozenset({"=", ":", "!"})


class TokenKind(Enum):
    LITERAL = "literal"
    SPAN = "span"
    KEYWORD = "keyword"
    NAME = "name"
    PIPE = "|"
    LPAREN = "("
    RPAREN = ")"
    RBRACE = "}"
    COMMA = ","
    SEMI = ";"
    EOF = "end of template"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    pos: int


@dataclass(frozen=True)
class Raw:
    """Verbatim host code and the stop that ended it (None at end of input)."""

    text: str
    pos: int
    stop: str | None


class Scanner:
    """Cursor over template source between `pos` and `end`."""

    def __init__(self, source: str, pos: int = 0, end: int | None = None):
        self.source = source
        self.pos = pos
        self.end = len(source) if end is None else end

    def error(self, message: str, pos: int | None = None) -> TemplateSyntaxError:
        return TemplateSyntaxError(
            self.pos if pos is None else pos, message, self.source
        )

    def at_end(self) -> bool:
        self.skip_ws()
        return self.pos >= self.end

    def skip_ws(self) -> None:
        while self.pos < self.end and self.source[self.pos].isspace():
            self.pos += 1

    def accept(self, text: str) -> bool:
        """Consume `text` (after whitespace) if it is next."""
        self.skip_ws()
        if self.source.startswith(text, self.pos, self.end):
            self.pos += len(text)
            return True
        return False

    def expect(self, text: str, message: str) -> int:
        """Consume `text` or fail with `message`; returns its position."""
        self.skip_ws()
        start = self.pos
        if not self.accept(text):
            raise self.error(message)
        return start

    def peek_char(self) -> str:
        self.skip_ws()
        return self.source[self.pos] if self.pos < self.end else ""

    def peek_token(self) -> Token:
        saved = self.pos
        try:
            return self.next_token()
        finally:
            self.pos = saved

    def peek_keyword(self, word: str) -> bool:
        token = self.peek_token()
        return token.kind is TokenKind.KEYWORD and token.text == word

    def next_token(self) -> Token:
        """Scan one token at a position where a template item may start."""
        self.skip_ws()
        start = self.pos
        if start >= self.end:
            return Token(TokenKind.EOF, "", start)

        char = self.source[start]
        if char == "{":
            return self.read_span()
        if char in "},;|()":
            self.pos += 1
            return Token(TokenKind(char), char, start)

        string_end = self._string_end(start)
        if string_end is not None:
            return self._literal_token(start, string_end)

        number = _NUMBER.match(self.source, start, self.end)
        if number:
            text = number.group()
            following = self.source[number.end() : number.end() + 1]
            if following.isalnum() or following == "_":
                raise self.error(f"invalid number literal {text + following!r}", start)
            try:
                value = ast.literal_eval(text)
            except (SyntaxError, ValueError) as exc:
                raise self.error(f"invalid number literal {text!r}", start) from exc
            self.pos = number.end()
            return Token(TokenKind.LITERAL, str(value), start)

        name = _NAME.match(self.source, start, self.end)
        if name:
            self.pos = name.end()
            kind = TokenKind.KEYWORD if name.group() in KEYWORDS else TokenKind.NAME
            return Token(kind, name.group(), start)

        raise self.error(f"unexpected character {char!r}")

    def read_name(self, message: str) -> Token:
        self.skip_ws()
        name = _NAME.match(self.source, self.pos, self.end)
        if not name:
            raise self.error(message)
        self.pos = name.end()
        return Token(TokenKind.NAME, name.group(), name.start())

    def read_span(self) -> Token:
        """Read a balanced `{...}` span; the token text excludes the braces."""
        self.skip_ws()
        start = self.pos
        if not self.source.startswith("{", start, self.end):
            raise self.error("expected '{'")
        stack = ["{"]
        i = start + 1
        while i < self.end:
            i, char = self._advance(i)
            if char is None:
                continue
            if char in _OPEN:
                stack.append(char)
            elif char in _CLOSE:
                if stack[-1] != _CLOSE[char]:
                    raise self.error(f"mismatched {char!r}", i - 1)
                stack.pop()
                if not stack:
                    self.pos = i
                    return Token(TokenKind.SPAN, self.source[start + 1 : i - 1], start)
        raise self.error("unterminated expression span", start)

    def read_raw(
        self,
        stops: tuple[str, ...] = (),
        words: tuple[str, ...] = (),
        operators: frozenset[str] = _OPERATOR_STOPS,
    ) -> Raw:
        """Read host code up to a top-level stop string or stop word.

        Single-character stops listed in `operators` do not match where they
        begin or end a two-character operator such as `==` or `!=`. The stop
        itself is not consumed. Reaching the end of input returns a `Raw` whose
        `stop` is None.
        """
        self.skip_ws()
        start = self.pos
        stack: list[str] = []
        i = start
        while i < self.end:
            if not stack:
                stop = self._match_stop(i, stops, operators)
                if stop is not None:
                    return self._raw(start, i, stop)
            char = self.source[i]
            name = _NAME.match(self.source, i, self.end)
            if name and self._string_end(i) is None:
                if not stack and name.group() in words:
                    return self._raw(start, i, name.group())
                i = name.end()
                continue
            i, char = self._advance(i)
            if char is None:
                continue
            if char in _OPEN:
                stack.append(char)
            elif char in _CLOSE:
                if not stack or stack[-1] != _CLOSE[char]:
                    raise self.error(f"unbalanced {char!r}", i - 1)
                stack.pop()
        if stack:
            raise self.error(f"unclosed {stack[-1]!r}", start)
        return self._raw(start, self.end, None)

    def _raw(self, start: int, stop_at: int, stop: str | None) -> Raw:
        self.pos = stop_at
        text = self.source[start:stop_at]
        stripped = text.rstrip()
        return Raw(stripped, start, stop)

    def _match_stop(
        self, i: int, stops: tuple[str, ...], operators: frozenset[str]
    ) -> str | None:
        for stop in stops:
            if not self.source.startswith(stop, i, self.end):
                continue
            if stop in operators:
                following = self.source[i + 1 : i + 2]
                preceding = self.source[i - 1 : i] if i > 0 else ""
                if following == "=" or (stop == "=" and preceding in set("=!<>:")):
                    continue
                if stop == "=" and following == ">":
                    continue
            return stop
        return None

    def _advance(self, i: int) -> tuple[int, str | None]:
        """Step over one character or a whole string literal starting at `i`.

        Returns the next index and the character stepped over, or None when a
        string literal was skipped.
        """
        string_end = self._string_end(i)
        if string_end is not None:
            return string_end, None
        return i + 1, self.source[i]

    def _string_end(self, i: int) -> int | None:
        """If a string literal starts at `i`, return the index just past it."""
        j = i
        while j < self.end and j - i < 2 and self.source[j].isalpha():
            j += 1
        prefix = self.source[i:j].lower()
        if prefix and prefix not in _STRING_PREFIXES:
            return None
        if j >= self.end or self.source[j] not in "'\"":
            return None
        if i > 0 and prefix and (self.source[i - 1].isalnum() or self.source[i - 1] == "_"):
            return None

        quote = self.source[j]
        if self.source.startswith(quote * 3, j, self.end):
            quote *= 3
        k = j + len(quote)
        while k < self.end:
            char = self.source[k]
            if char == "\\":
                k += 2
                continue
            if len(quote) == 1 and char == "\n":
                break
            if self.source.startswith(quote, k, self.end):
                return k + len(quote)
            k += 1
        raise self.error("unterminated string literal", i)

    def _literal_token(self, start: int, end: int) -> Token:
        text = self.source[start:end]
        prefix = text[: len(text) - len(text.lstrip("rRuUbBfF"))].lower()
        if "f" in prefix:
            raise self.error(
                "f-strings are not template literals; use {expr} interpolation", start
            )
        if "b" in prefix:
            raise self.error("bytes literals are not template literals", start)
        try:
            value = ast.literal_eval(text)
        except (SyntaxError, ValueError) as exc:
            raise self.error(f"invalid escape sequence in literal: {exc}", start) from exc
        self.pos = end
        return Token(TokenKind.LITERAL, value, start)
