"""Block/scope tracking.

Every control statement opens a block. Blocks are closed either by
indentation (a later line that no longer nests inside them), by an
explicit `end` line, or by a lone `}` when the header ended with `{`.
The stack of open blocks is bounded; `BlockStack.push` refuses to grow
past its capacity instead of raising.

`auto_close` is the indentation state machine on its own, kept free of
any output concerns so it can be exercised in isolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional

from .types import BlockKind, Closer

if TYPE_CHECKING:
    from .assembler import Function


@dataclass
class Block:
    kind: BlockKind
    indent: int
    opened_at_line: int
    closer: Closer = Closer.INDENT
    closed_by_end: bool = False  # only an explicit `end` may close it
    extra_closers: int = 0       # additional C scopes opened by the header
    function: Optional['Function'] = None

    @property
    def uses_braces(self) -> bool:
        return self.closer is Closer.BRACE

    def describe(self) -> str:
        return f"'{self.kind}' block opened at line {self.opened_at_line}"


class BlockStack:
    def __init__(self, capacity: int = 128):
        self.capacity = capacity
        self.blocks: List[Block] = []

    def __len__(self) -> int:
        return len(self.blocks)

    def __bool__(self) -> bool:
        return bool(self.blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    @property
    def full(self) -> bool:
        return len(self.blocks) >= self.capacity

    @property
    def top(self) -> Optional[Block]:
        return self.blocks[-1] if self.blocks else None

    def push(self, block: Block) -> bool:
        if self.full:
            return False
        self.blocks.append(block)
        return True

    def pop(self) -> Optional[Block]:
        if not self.blocks:
            return None
        return self.blocks.pop()

    def in_function(self) -> bool:
        return any(b.kind is BlockKind.FUNC for b in self.blocks)


def auto_close(stack: BlockStack, indent: int, is_continuation: bool) -> List[Block]:
    """Pop the blocks a line at `indent` no longer nests inside.

    Returns the popped blocks, innermost first. Brace blocks and blocks
    waiting for an explicit `end` stop the pass, as does an `if`/`elif`
    at the same indentation when the line continues its chain. A `func`
    block is the last block considered in one pass.
    """
    closed: List[Block] = []
    while stack:
        block = stack.top
        if block.closer is Closer.BRACE or block.closed_by_end:
            break
        if block.kind is BlockKind.FUNC:
            if indent <= block.indent:
                closed.append(stack.pop())
            break
        if indent > block.indent:
            break
        if indent == block.indent and is_continuation and block.kind.continues_chain:
            break
        closed.append(stack.pop())
    return closed
