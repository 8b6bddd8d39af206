"""Parser for Ember statement lines.

Parsing happens in two stages for every significant line:

1. **Tokenizing**: the trimmed line is fed into a Lark parser whose
   grammar accepts any sequence of tokens. The useful product is the
   token stream itself: identifiers, numbers, string and char literals
   and punctuation, each carrying its offsets into the line so that
   expression text can be sliced back out verbatim.

2. **Statement parsing**: a small recursive-descent parser looks at the
   leading tokens to decide which statement the line holds and pulls
   out its operands. Problems such as a missing `:` or a missing loop
   bound are reported to the diagnostic collector and replaced by safe
   defaults, so a single run surfaces as many issues as possible.

`parse_line` is the public entry point and returns one node from
`ember.ast`.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from lark import Lark, Token
from lark.exceptions import UnexpectedInput

from .ast import (
    Node, BraceClose, EndClose, VarDecl, PrintStmt, IfStmt, ElifStmt,
    ElseStmt, WhileStmt, ForRange, ForIn, FuncDecl, IntrinsicCall, RawStmt,
)
from .diagnostics import DiagnosticCollector
from .reader import SourceLine
from .runtime import INTRINSICS
from .types import TYPE_KEYWORDS


LINE_GRAMMAR = r"""
    start: _item*
    _item: STRING | CHAR | NUMBER | NAME | OP | QUOTE

    STRING.3: /"(\\.|[^"\\])*"/
    CHAR.3: /'(\\.|[^'\\])*'/
    NUMBER.2: /\d+(\.\d+)?/
    NAME.2: /[^\W\d]\w*/
    OP: /==|!=|<=|>=|&&|\|\||\+\+|--|\+=|-=|\*=|\/=|%=|->|<<|>>|[^\w\s"']/
    QUOTE: /["']/

    %ignore /\s+/
"""


LINE_LEXER = Lark(
    LINE_GRAMMAR,
    parser='lalr',
    lexer='basic',
    maybe_placeholders=False,
)

ASSIGN_OPS = ('=', '+=', '-=', '*=', '/=', '%=', '++', '--')
OPENERS = '([{'
CLOSERS = ')]}'
IDENTIFIER = re.compile(r'[A-Za-z_]\w*$')


def tokenize_line(text: str) -> List[Token]:
    """Split one line of Ember into tokens.

    Raises `lark.exceptions.UnexpectedInput` if a character cannot be
    tokenized; the grammar's catch-all terminals make this unlikely.
    """
    tree = LINE_LEXER.parse(text)
    return [child for child in tree.children if isinstance(child, Token)]


def is_identifier(text: Optional[str]) -> bool:
    return bool(text) and IDENTIFIER.match(text) is not None


def _split(tokens: List[Token], text: str, start: int, end: int, sep: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    first = start
    for i in range(start, end):
        value = tokens[i].value
        if value in OPENERS:
            depth += 1
        elif value in CLOSERS:
            depth = max(0, depth - 1)
        elif value == sep and depth == 0:
            parts.append(_slice(tokens, text, first, i))
            first = i + 1
    if first < end or parts:
        parts.append(_slice(tokens, text, first, end))
    return parts


def _slice(tokens: List[Token], text: str, start: int, end: int) -> str:
    if start >= end:
        return ''
    return text[tokens[start].start_pos:tokens[end - 1].end_pos].strip()


def split_top_level(text: str, sep: str = ',') -> List[str]:
    """Split expression text on `sep` outside of brackets and literals."""
    tokens = tokenize_line(text)
    return _split(tokens, text, 0, len(tokens), sep)


class LineParser:
    """Recursive-descent parser for a single significant line."""

    def __init__(self, line: SourceLine, diagnostics: DiagnosticCollector):
        self.line = line
        self.text = line.text
        self.diagnostics = diagnostics
        try:
            self.tokens = tokenize_line(self.text)
        except UnexpectedInput as e:
            self.error(f"cannot tokenize line at column {e.column}")
            self.tokens = []

    def error(self, message: str):
        self.diagnostics.error(message, self.line.number)

    # Token helpers

    def value(self, i: int) -> str:
        if 0 <= i < len(self.tokens):
            return self.tokens[i].value
        return ''

    def spaced(self, i: int) -> bool:
        """True if token `i` is followed by whitespace in the source."""
        if not 0 <= i < len(self.tokens):
            return False
        end = self.tokens[i].end_pos
        return end < len(self.text) and self.text[end].isspace()

    def adjacent(self, i: int, j: int) -> bool:
        return self.tokens[i].end_pos == self.tokens[j].start_pos

    def slice(self, start: int, end: int) -> str:
        return _slice(self.tokens, self.text, start, end)

    def keyword(self, i: int, word: str) -> bool:
        """`word` at token `i` used as a keyword, i.e. followed by a space."""
        return (i < len(self.tokens) and self.tokens[i].type == 'NAME'
                and self.tokens[i].value == word and self.spaced(i))

    def call(self, i: int, name: str) -> bool:
        return (i + 1 < len(self.tokens) and self.tokens[i].type == 'NAME'
                and self.tokens[i].value == name and self.value(i + 1) == '('
                and self.adjacent(i, i + 1))

    def find(self, word: str, start: int, end: int) -> int:
        """Index of keyword `word` outside brackets within [start, end), or -1."""
        depth = 0
        for i in range(start, end):
            tok = self.tokens[i]
            if tok.value in OPENERS:
                depth += 1
            elif tok.value in CLOSERS:
                depth = max(0, depth - 1)
            elif depth == 0 and tok.value == word and tok.type in ('NAME', 'OP'):
                return i
        return -1

    def header(self, start: int, keyword: str) -> Tuple[int, bool]:
        """Locate the end of a block header.

        Returns the index one past the header's last operand token and
        whether the header opens a brace block.
        """
        end = len(self.tokens)
        if end > start and self.value(end - 1) == ':':
            return end - 1, False
        if end > start and self.value(end - 1) == '{':
            return end - 1, True
        self.error(f"missing ':' or '{{' at end of '{keyword}' statement")
        return end, False

    # Statements

    def parse(self) -> Node:
        if self.text == '}':
            return BraceClose()
        if self.text == 'end':
            return EndClose()
        if self.keyword(0, 'const'):
            return self.parse_declaration(1, is_const=True)
        if any(self.keyword(0, kw) for kw in TYPE_KEYWORDS):
            return self.parse_declaration(0, is_const=False)
        if self.call(0, 'print'):
            return self.parse_print()
        if self.keyword(0, 'if'):
            condition, opens_brace = self.parse_condition(1, 'if', '1')
            return IfStmt(condition, opens_brace)
        start = 1 if self.value(0) == '}' and len(self.tokens) > 1 else 0
        if self.keyword(start, 'elif'):
            condition, opens_brace = self.parse_condition(start + 1, 'elif', '1')
            return ElifStmt(condition, opens_brace)
        if self.value(start) == 'else' and self.tokens[start].type == 'NAME':
            return self.parse_else(start + 1)
        if self.keyword(0, 'while'):
            condition, opens_brace = self.parse_condition(1, 'while', '0')
            return WhileStmt(condition, opens_brace)
        if self.keyword(0, 'for'):
            end, opens_brace = self.header(1, 'for')
            if self.find('in', 1, end) >= 0:
                return self.parse_for_in(end, opens_brace)
            return self.parse_for_range(end, opens_brace)
        if self.keyword(0, 'func'):
            return self.parse_func()
        for name in INTRINSICS:
            if self.call(0, name):
                return self.parse_intrinsic(name)
        return self.parse_raw()

    def parse_declaration(self, start: int, is_const: bool) -> VarDecl:
        type_name: Optional[str] = self.value(start)
        i = start + 1
        if type_name not in TYPE_KEYWORDS:
            self.error("'const' must be followed by a type (" + ', '.join(TYPE_KEYWORDS) + ')')
            type_name = None
            i = start
        if i >= len(self.tokens) or self.tokens[i].type != 'NAME':
            self.error(f"missing variable name in '{type_name or 'const'}' declaration")
            return VarDecl(type_name, None, None, is_const)
        name = self.tokens[i].value
        i += 1
        value: Optional[str] = None
        if i < len(self.tokens):
            if self.value(i) != '=':
                self.error(f"expected '=' after '{name}'")
            else:
                value = self.slice(i + 1, len(self.tokens)) or None
                if value is None:
                    self.error(f"missing value after '=' in declaration of '{name}'")
        elif is_const:
            self.error(f"const '{name}' needs an initial value")
        return VarDecl(type_name, name, value, is_const)

    def parse_print(self) -> PrintStmt:
        end = len(self.tokens)
        if self.value(end - 1) == ')' and end > 2:
            end -= 1
        else:
            self.error("missing ')' in print statement")
        expr = self.slice(2, end)
        if not expr:
            self.error('print() needs a value')
            return PrintStmt(None)
        return PrintStmt(expr)

    def parse_condition(self, start: int, keyword: str, fallback: str) -> Tuple[str, bool]:
        end, opens_brace = self.header(start, keyword)
        condition = self.slice(start, end)
        if not condition:
            self.error(f"missing condition in '{keyword}' statement")
            condition = fallback
        return condition, opens_brace

    def parse_else(self, start: int) -> ElseStmt:
        rest = self.tokens[start:]
        if not rest:
            return ElseStmt(False)
        if len(rest) == 1 and rest[0].value in (':', '{'):
            return ElseStmt(rest[0].value == '{')
        self.error("expected ':' or '{' after 'else'")
        return ElseStmt(self.value(len(self.tokens) - 1) == '{')

    def parse_for_range(self, end: int, opens_brace: bool) -> ForRange:
        eq = self.find('=', 1, end)
        if eq < 0:
            self.error("missing '=' in 'for' statement")
            var = self.value(1) if end > 1 and self.tokens[1].type == 'NAME' else ''
            eq = 1
        else:
            var = self.slice(1, eq)
        if not is_identifier(var) or var == 'to':
            self.error("missing loop variable in 'for' statement")
            var = '_i'
        to = self.find('to', eq + 1, end)
        if to < 0:
            self.error("missing 'to' in 'for' statement")
            start = self.slice(eq + 1, end) if eq < end else ''
            return ForRange(var, start or '0', '0', '1', opens_brace)
        start = self.slice(eq + 1, to)
        if not start:
            self.error("missing start value in 'for' statement")
            start = '0'
        end_value, step = self.split_step(to + 1, end)
        if not end_value:
            self.error("missing end value in 'for' statement")
            end_value = '0'
        return ForRange(var, start, end_value, step, opens_brace)

    def split_step(self, start: int, end: int) -> Tuple[str, str]:
        """Split `END(STEP)` into its end expression and step."""
        if end - start < 2 or self.value(end - 1) != ')':
            return self.slice(start, end), '1'
        depth = 0
        j = end - 1
        while j >= start:
            value = self.value(j)
            if value in CLOSERS:
                depth += 1
            elif value in OPENERS:
                depth -= 1
                if depth == 0:
                    break
            j -= 1
        if j <= start or self.value(j) != '(':
            return self.slice(start, end), '1'
        before = self.tokens[j - 1]
        # `len(xs)` is a call, `10(2)` and `n (2)` carry a step
        if before.type == 'NAME' and self.adjacent(j - 1, j):
            return self.slice(start, end), '1'
        step = self.slice(j + 1, end - 1)
        if not step:
            self.error("missing step value in 'for' statement")
            step = '1'
        return self.slice(start, j), step

    def parse_for_in(self, end: int, opens_brace: bool) -> ForIn:
        at = self.find('in', 1, end)
        var = self.slice(1, at)
        if not is_identifier(var):
            self.error("missing loop variable in 'for' statement")
            var = '_i'
        iterable = self.slice(at + 1, end)
        if not iterable:
            self.error("missing iterable in 'for' statement")
            iterable = '""'
        return ForIn(var, iterable, opens_brace)

    def parse_func(self) -> FuncDecl:
        end, opens_brace = self.header(1, 'func')
        if end - 1 >= 2 and self.value(end - 2) == '(' and self.value(end - 1) == ')':
            end -= 2
        name = self.slice(1, end)
        if not is_identifier(name):
            self.error('missing function name' if not name else f"invalid function name '{name}'")
            return FuncDecl(None, opens_brace)
        return FuncDecl(name, opens_brace)

    def parse_intrinsic(self, name: str) -> IntrinsicCall:
        end = len(self.tokens)
        if self.value(end - 1) == ')' and end > 2:
            end -= 1
        else:
            self.error(f"missing ')' in call to {name}()")
        args = _split(self.tokens, self.text, 2, end, ',')
        return IntrinsicCall(name, args)

    def parse_raw(self) -> RawStmt:
        target = None
        if (len(self.tokens) > 1 and self.tokens[0].type == 'NAME'
                and self.value(1) in ASSIGN_OPS):
            target = self.tokens[0].value
        return RawStmt(self.text, target)


def parse_line(line: SourceLine, diagnostics: DiagnosticCollector) -> Node:
    """Parse one significant line into a statement node."""
    return LineParser(line, diagnostics).parse()
