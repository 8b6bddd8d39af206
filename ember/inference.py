"""Best-effort static type inference over expression text.

Ember expressions are never fully parsed. The generator only needs to
know roughly what an expression produces (to pick a printf format, to
choose how a `for ... in` loop iterates, and so on), so `infer` looks at
the surface text and applies an ordered list of heuristics. The first
heuristic that matches wins; later ones assume the literal forms have
already been ruled out.
"""

from __future__ import annotations

import re

from ember.environment import SymbolTable
from ember.types import VarType

LEADING_IDENT = re.compile(r'[A-Za-z0-9_]+')
TRAILING_IDENT = re.compile(r'[A-Za-z0-9_]+$')
DIGITS = frozenset('0123456789')


def _is_float_literal(expr: str) -> bool:
    if '.' not in expr:
        return False
    body = expr[1:] if expr.startswith('-') else expr
    return all(c in DIGITS or c == '.' for c in body)


def _is_int_literal(expr: str) -> bool:
    return all(c in DIGITS or (i == 0 and c == '-') for i, c in enumerate(expr))


def leading_identifier(expr: str) -> str:
    m = LEADING_IDENT.match(expr)
    return m.group(0) if m else ''


def index_base(expr: str) -> str:
    """Identifier immediately before the first `[` in `expr`, if any."""
    head = expr.split('[', 1)[0].rstrip()
    m = TRAILING_IDENT.search(head)
    return m.group(0) if m else ''


def infer(expr: str, symbols: SymbolTable) -> VarType:
    expr = expr.strip()
    if expr.startswith('"'):
        return VarType.STRING
    if expr in ('true', 'false'):
        return VarType.BOOL
    if expr.startswith('(') and ',' in expr:
        return VarType.TUPLE
    if expr.startswith('['):
        return VarType.LIST
    if expr.startswith('{'):
        return VarType.DICT
    if _is_float_literal(expr):
        return VarType.FLOAT
    if _is_int_literal(expr):
        return VarType.INT
    ident = leading_identifier(expr)
    # `xs[0]` is an element access, not the container itself
    if ident and not expr[len(ident):].lstrip().startswith('['):
        vtype = symbols.lookup(ident)
        if vtype is not VarType.UNKNOWN:
            return vtype
    if '[' in expr:
        base = symbols.lookup(index_base(expr))
        if base in (VarType.LIST, VarType.TUPLE, VarType.STRING):
            # characters index as their integer codes
            return VarType.INT
    return VarType.INT
