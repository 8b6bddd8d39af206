"""Rendering of fragments and assembly of the final C translation unit.

The unit is always laid out in the same order: the runtime preamble,
one forward declaration per user function, the function bodies in
declaration order, and finally `main` wrapping the top-level program.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Set

from .ir import (
    Fragment, Declare, PrintFormat, PrintCall, CallStmt, Statement,
    OpenIf, OpenElif, OpenElse, OpenWhile, OpenFor, OpenScope, CloseScope,
    OutputStream, OPENERS, CONTINUATIONS,
)
from .runtime import RUNTIME_PREAMBLE

INDENT = '    '


@dataclass
class Function:
    name: str
    line: int
    body: OutputStream = field(default_factory=OutputStream)


class FunctionTable:
    """Functions in declaration order; duplicate names are kept side by side."""

    def __init__(self, capacity: int = 256):
        self.capacity = capacity
        self.functions: List[Function] = []
        self.names: Set[str] = set()

    def __len__(self) -> int:
        return len(self.functions)

    def __iter__(self) -> Iterator[Function]:
        return iter(self.functions)

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def get(self, name: str) -> Function:
        for fn in self.functions:
            if fn.name == name:
                return fn
        raise KeyError(name)

    def add(self, fn: Function) -> bool:
        if len(self.functions) >= self.capacity:
            return False
        self.functions.append(fn)
        self.names.add(fn.name)
        return True


def render_fragment(frag: Fragment) -> str:
    if isinstance(frag, Declare):
        prefix = 'const ' if frag.const else ''
        if frag.init is None:
            return f"{prefix}{frag.ctype} {frag.name};"
        return f"{prefix}{frag.ctype} {frag.name} = {frag.init};"
    if isinstance(frag, PrintFormat):
        return f'printf("{frag.fmt}\\n", {frag.arg});'
    if isinstance(frag, PrintCall):
        return f"{frag.printer}({frag.arg});"
    if isinstance(frag, CallStmt):
        return f"{frag.func}({', '.join(frag.args)});"
    if isinstance(frag, Statement):
        return f"{frag.text};"
    if isinstance(frag, OpenIf):
        return f"if ({frag.condition}) {{"
    if isinstance(frag, OpenElif):
        return f"}} else if ({frag.condition}) {{"
    if isinstance(frag, OpenElse):
        return '} else {'
    if isinstance(frag, OpenWhile):
        return f"while ({frag.condition}) {{"
    if isinstance(frag, OpenFor):
        return f"for ({frag.init}; {frag.condition}; {frag.step}) {{"
    if isinstance(frag, OpenScope):
        return '{'
    if isinstance(frag, CloseScope):
        return '}'
    raise TypeError(f"Unsupported fragment: {type(frag).__name__}")


def render_body(fragments: Iterable[Fragment], depth: int = 1) -> List[str]:
    """Render fragments to indented lines starting at `depth`."""
    base = depth
    lines: List[str] = []
    for frag in fragments:
        text = render_fragment(frag)
        if isinstance(frag, CloseScope):
            depth = max(base, depth - 1)
            lines.append(INDENT * depth + text)
        elif isinstance(frag, CONTINUATIONS):
            lines.append(INDENT * max(base, depth - 1) + text)
        elif isinstance(frag, OPENERS):
            lines.append(INDENT * depth + text)
            depth += 1
        else:
            lines.append(INDENT * depth + text)
    return lines


def assemble(functions: Iterable[Function], main: Iterable[Fragment]) -> str:
    functions = list(functions)
    parts: List[str] = [RUNTIME_PREAMBLE]
    if functions:
        parts.extend(f"void {fn.name}(void);" for fn in functions)
        parts.append('')
    for fn in functions:
        parts.append(f"void {fn.name}(void) {{")
        parts.extend(render_body(fn.body))
        parts.append('}')
        parts.append('')
    parts.append('int main(void) {')
    parts.extend(render_body(main))
    parts.append(INDENT + 'return 0;')
    parts.append('}')
    return '\n'.join(parts) + '\n'
