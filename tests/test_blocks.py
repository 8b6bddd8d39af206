from ember.blocks import Block, BlockStack, auto_close
from ember.compiler import Transpiler
from ember.reader import LineReader
from ember.types import BlockKind, Closer


def stack_of(*blocks):
    stack = BlockStack()
    for block in blocks:
        stack.push(block)
    return stack


def test_dedent_pops_nested_indent_blocks():
    stack = stack_of(Block(BlockKind.WHILE, 0, 1), Block(BlockKind.IF, 4, 2))
    closed = auto_close(stack, 0, is_continuation=False)
    assert [b.kind for b in closed] == [BlockKind.IF, BlockKind.WHILE]
    assert not stack


def test_deeper_line_keeps_blocks_open():
    stack = stack_of(Block(BlockKind.WHILE, 0, 1))
    assert auto_close(stack, 4, is_continuation=False) == []
    assert len(stack) == 1


def test_continuation_stops_at_if_with_equal_indent():
    stack = stack_of(Block(BlockKind.IF, 0, 1), Block(BlockKind.FOR, 4, 2))
    closed = auto_close(stack, 0, is_continuation=True)
    assert [b.kind for b in closed] == [BlockKind.FOR]
    assert stack.top.kind is BlockKind.IF


def test_continuation_does_not_protect_while():
    stack = stack_of(Block(BlockKind.WHILE, 0, 1))
    assert len(auto_close(stack, 0, is_continuation=True)) == 1


def test_brace_and_end_blocks_stop_the_pass():
    stack = stack_of(Block(BlockKind.IF, 0, 1, Closer.BRACE), Block(BlockKind.FOR, 4, 2))
    assert len(auto_close(stack, 0, is_continuation=False)) == 1
    assert stack.top.uses_braces
    stack = stack_of(Block(BlockKind.WHILE, 0, 1, closed_by_end=True))
    assert auto_close(stack, 0, is_continuation=False) == []


def test_func_is_the_last_block_considered():
    stack = stack_of(Block(BlockKind.IF, 0, 1), Block(BlockKind.FUNC, 0, 2), Block(BlockKind.FOR, 4, 3))
    closed = auto_close(stack, 0, is_continuation=False)
    assert [b.kind for b in closed] == [BlockKind.FOR, BlockKind.FUNC]
    assert stack.top.kind is BlockKind.IF


def test_bounded_push():
    stack = BlockStack(capacity=1)
    assert stack.push(Block(BlockKind.IF, 0, 1))
    assert not stack.push(Block(BlockKind.IF, 4, 2))
    assert len(stack) == 1


def test_balanced_program_leaves_empty_stack():
    source = (
        'int x = 0\n'
        'while x < 3:\n'
        '    if x == 1 {\n'
        '        print(x)\n'
        '    }\n'
        '    x += 1\n'
        'print(x)\n'
    )
    transpiler = Transpiler()
    for line in LineReader(source):
        transpiler.process_line(line)
    assert len(transpiler.blocks) == 0
