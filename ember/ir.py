"""Intermediate fragments of generated C.

The code generator does not build C text directly. It produces small
fragments, one per emitted C statement or block boundary, with every
operand already rewritten and resolved. The assembler renders them to
text in a separate step, which keeps indentation and brace structure in
one place and lets tests inspect what was generated without depending on
exact formatting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional


@dataclass
class Fragment:
    """Base class for all generated fragments."""
    pass


@dataclass
class Declare(Fragment):
    ctype: str
    name: str
    init: Optional[str] = None
    const: bool = False


@dataclass
class PrintFormat(Fragment):
    fmt: str  # printf conversion without the trailing newline, e.g. '%d'
    arg: str


@dataclass
class PrintCall(Fragment):
    printer: str
    arg: str


@dataclass
class CallStmt(Fragment):
    func: str
    args: List[str] = field(default_factory=list)


@dataclass
class Statement(Fragment):
    text: str


@dataclass
class OpenIf(Fragment):
    condition: str


@dataclass
class OpenElif(Fragment):
    condition: str


@dataclass
class OpenElse(Fragment):
    pass


@dataclass
class OpenWhile(Fragment):
    condition: str


@dataclass
class OpenFor(Fragment):
    init: str
    condition: str
    step: str


@dataclass
class OpenScope(Fragment):
    pass


@dataclass
class CloseScope(Fragment):
    pass


OPENERS = (OpenIf, OpenWhile, OpenFor, OpenScope)
CONTINUATIONS = (OpenElif, OpenElse)


class OutputStream:
    """Bounded, append-only sequence of fragments."""

    def __init__(self, capacity: int = 65536):
        self.capacity = capacity
        self.fragments: List[Fragment] = []

    def __len__(self) -> int:
        return len(self.fragments)

    def __iter__(self) -> Iterator[Fragment]:
        return iter(self.fragments)

    def __getitem__(self, index):
        return self.fragments[index]

    @property
    def full(self) -> bool:
        return len(self.fragments) >= self.capacity

    def emit(self, fragment: Fragment) -> bool:
        if self.full:
            return False
        self.fragments.append(fragment)
        return True
