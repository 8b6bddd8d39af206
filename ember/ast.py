"""Statement nodes for the Ember language.

Ember is parsed one line at a time, and every significant line becomes
exactly one of the statement nodes below. Expressions are not parsed
into trees: they are carried as the surface text the programmer wrote,
because the generator passes them through to C after a few targeted
rewrites. Missing operands have already been diagnosed and replaced by
safe defaults when a node is built, except where a field is Optional.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Node:
    """Base class for all statement nodes."""
    pass


@dataclass
class BraceClose(Node):
    pass


@dataclass
class EndClose(Node):
    pass


@dataclass
class VarDecl(Node):
    type_name: Optional[str]  # None when `const` was not followed by a type
    name: Optional[str]
    value: Optional[str]
    is_const: bool = False


@dataclass
class PrintStmt(Node):
    expr: Optional[str]


@dataclass
class IfStmt(Node):
    condition: str
    opens_brace: bool = False


@dataclass
class ElifStmt(Node):
    condition: str
    opens_brace: bool = False


@dataclass
class ElseStmt(Node):
    opens_brace: bool = False


@dataclass
class WhileStmt(Node):
    condition: str
    opens_brace: bool = False


@dataclass
class ForRange(Node):
    var: str
    start: str
    end: str
    step: str = '1'
    opens_brace: bool = False


@dataclass
class ForIn(Node):
    var: str
    iterable: str
    opens_brace: bool = False


@dataclass
class FuncDecl(Node):
    name: Optional[str]
    opens_brace: bool = False


@dataclass
class IntrinsicCall(Node):
    name: str  # append, dset or dget
    args: List[str] = field(default_factory=list)


@dataclass
class RawStmt(Node):
    text: str
    target: Optional[str] = None  # name assigned by the statement, if any


CONTINUATIONS = (ElifStmt, ElseStmt)
