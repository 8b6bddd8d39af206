"""The Ember transpiler engine.

A `Transpiler` owns all state of one compilation: the symbol table, the
stack of open blocks, the function table, the output streams and the
diagnostics. `transpile` walks the significant lines of a program once.
For every line it

1. parses the line into a statement node,
2. applies explicit closers (`}` and `end`) or, in modes that close by
   indentation, pops the blocks the line no longer nests inside,
3. dispatches the statement: registering names, generating fragments
   into the active stream and opening or continuing blocks.

When the input is exhausted, blocks that are still open are flushed and
the output is assembled. Problems are never raised; they are recorded
as diagnostics, and the caller decides what to do with the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set, Union

from .assembler import Function, FunctionTable, assemble, render_fragment
from .ast import (
    Node, BraceClose, EndClose, VarDecl, PrintStmt, IfStmt, ElifStmt,
    ElseStmt, WhileStmt, ForRange, ForIn, FuncDecl, IntrinsicCall, RawStmt,
    CONTINUATIONS,
)
from .blocks import Block, BlockStack, auto_close
from .codegen import CodeGenerator
from .config import Mode, Limits, DEFAULT_MODE, TRACE_LEVEL, get_mode
from .diagnostics import Diagnostic, DiagnosticCollector, format_report
from .environment import SymbolTable
from .inference import infer
from .ir import Fragment, OpenIf, OpenElif, OpenElse, OpenWhile, CloseScope, OutputStream
from .parser import parse_line
from .reader import LineReader, SourceLine
from .types import VarType, BlockKind, Closer


@dataclass
class CompileResult:
    """Everything one compilation produced."""
    c_source: str
    diagnostics: DiagnosticCollector
    functions: FunctionTable
    main: OutputStream
    symbols: SymbolTable
    mode: Mode

    @property
    def ok(self) -> bool:
        return not self.diagnostics.has_errors

    @property
    def errors(self) -> List[Diagnostic]:
        return self.diagnostics.errors

    @property
    def warnings(self) -> List[Diagnostic]:
        return self.diagnostics.warnings

    def report(self) -> str:
        return format_report(self.diagnostics)


class Transpiler:
    """Single-pass, line-oriented Ember to C transpiler."""

    def __init__(self, mode: Union[str, Mode] = DEFAULT_MODE, limits: Optional[Limits] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt'):
        self.mode = get_mode(mode) if isinstance(mode, str) else mode
        self.limits = limits or Limits()
        if self.mode.trace:
            debug_level = max(debug_level, TRACE_LEVEL)
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.reset()

    def reset(self):
        limits = self.limits
        self.diagnostics = DiagnosticCollector(limits.max_diagnostics)
        self.symbols = SymbolTable(limits.max_vars)
        self.blocks = BlockStack(limits.max_depth)
        self.functions = FunctionTable(limits.max_functions)
        self.main = OutputStream(limits.max_fragments)
        self.current = self.main
        self.codegen = CodeGenerator(self.symbols, self.diagnostics)
        self.line_number = 0
        # closers still owed to discarded `func main` headers
        self.pending_main: List[Block] = []
        self.exhausted: Set[str] = set()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def error(self, message: str):
        self.diagnostics.error(message, self.line_number)

    def warning(self, message: str):
        self.diagnostics.warning(message, self.line_number)

    def exhaust(self, resource: str, message: str):
        """Record running out of `resource`, once per compilation."""
        if resource in self.exhausted:
            return
        self.exhausted.add(resource)
        self.error(message)

    # Driver

    def transpile(self, source: str) -> CompileResult:
        self.reset()
        self.debug_fp = open(self.debug_file, 'w', encoding='utf-8') if self.debug_level > 0 else None
        try:
            for line in LineReader(source):
                self.process_line(line)
            self.flush()
            c_source = assemble(self.functions, self.main)
        finally:
            if self.debug_fp:
                self.debug_fp.close()
                self.debug_fp = None
        return CompileResult(c_source, self.diagnostics, self.functions, self.main, self.symbols, self.mode)

    def process_line(self, line: SourceLine):
        self.line_number = line.number
        stmt = parse_line(line, self.diagnostics)
        if self.debug_level >= 3:
            self.debug(f"line {line.number} (indent {line.indent}): {line.text!r} -> {stmt}")
        if isinstance(stmt, BraceClose):
            self.close_explicit(Closer.BRACE, "unmatched '}'")
            return
        if isinstance(stmt, EndClose):
            self.close_explicit(Closer.INDENT, "'end' has no matching block")
            return
        if self.mode.auto_close:
            self.release_main(line.indent)
            for block in auto_close(self.blocks, line.indent, isinstance(stmt, CONTINUATIONS)):
                self.emit_close(block)
        self.dispatch(stmt, line)

    def dispatch(self, stmt: Node, line: SourceLine):
        if isinstance(stmt, VarDecl):
            self.declare(stmt)
        elif isinstance(stmt, PrintStmt):
            if stmt.expr is not None:
                self.emit(self.codegen.print_(stmt.expr))
        elif isinstance(stmt, IfStmt):
            header = OpenIf(self.codegen.expression(stmt.condition))
            self.open_block(BlockKind.IF, line, stmt.opens_brace, [header])
        elif isinstance(stmt, (ElifStmt, ElseStmt)):
            self.continue_chain(stmt)
        elif isinstance(stmt, WhileStmt):
            header = OpenWhile(self.codegen.expression(stmt.condition))
            self.open_block(BlockKind.WHILE, line, stmt.opens_brace, [header])
        elif isinstance(stmt, ForRange):
            header = self.codegen.for_range(stmt)
            self.register(stmt.var, VarType.INT)
            self.open_block(BlockKind.FOR, line, stmt.opens_brace, [header])
        elif isinstance(stmt, ForIn):
            fragments, extra, vtype = self.codegen.for_in(stmt, line.number)
            self.register(stmt.var, vtype)
            self.open_block(BlockKind.FOR_IN, line, stmt.opens_brace, fragments, extra)
        elif isinstance(stmt, FuncDecl):
            self.define_function(stmt, line)
        elif isinstance(stmt, IntrinsicCall):
            call = self.codegen.intrinsic(stmt, line.number)
            if call is not None:
                self.emit(call)
        elif isinstance(stmt, RawStmt):
            if stmt.target is not None and self.symbols.is_const(stmt.target):
                self.error(f"cannot assign to const '{stmt.target}'")
            self.emit(self.codegen.raw(stmt))
        else:
            raise TypeError(f"Unsupported statement: {type(stmt).__name__}")

    # Output

    def emit(self, fragment: Fragment):
        if not self.current.emit(fragment):
            self.exhaust('fragments', f"generated program too large (limit {self.current.capacity} fragments)")
            return
        if self.debug_level >= 2:
            self.debug(f"emit {render_fragment(fragment)}")

    def active_stream(self) -> OutputStream:
        for block in reversed(self.blocks.blocks):
            if block.kind is BlockKind.FUNC and block.function is not None:
                return block.function.body
        return self.main

    # Blocks

    def open_block(self, kind: BlockKind, line: SourceLine, opens_brace: bool,
                   fragments: List[Fragment], extra: int = 0,
                   function: Optional[Function] = None) -> bool:
        if self.blocks.full:
            self.exhaust('blocks', f"blocks nested too deeply (limit {self.blocks.capacity})")
            return False
        closer = Closer.BRACE if opens_brace else Closer.INDENT
        block = Block(kind, line.indent, line.number, closer,
                      closed_by_end=closer is Closer.INDENT and self.mode.raw,
                      extra_closers=extra, function=function)
        for fragment in fragments:
            self.emit(fragment)
        self.blocks.push(block)
        if self.debug_level >= 1:
            self.debug(f"open {block.describe()} ({closer}, depth {len(self.blocks)})")
        return True

    def close_explicit(self, closer: Closer, unmatched: str):
        block = self.blocks.pop()
        if block is None:
            if self.pending_main:
                self.pending_main.pop()
                if self.debug_level >= 1:
                    self.debug(f"closer at line {self.line_number} ends 'func main'")
                return
            self.error(unmatched)
            return
        if block.closer is not closer:
            if block.uses_braces:
                self.warning(f"{block.describe()} with '{{' closed by 'end'")
            else:
                self.warning(f"{block.describe()} with ':' closed by '}}'")
        self.emit_close(block)

    def release_main(self, indent: int):
        """Forget `func main` headers whose indented body has ended."""
        while (self.pending_main and self.pending_main[-1].closer is Closer.INDENT
               and indent <= self.pending_main[-1].indent):
            header = self.pending_main.pop()
            if self.debug_level >= 1:
                self.debug(f"body of 'func main' from line {header.opened_at_line} ended by dedent")

    def emit_close(self, block: Block):
        if self.debug_level >= 1:
            self.debug(f"close {block.describe()}")
        if block.kind is BlockKind.FUNC:
            self.current = self.active_stream()
            if self.debug_level >= 1:
                target = 'main' if self.current is self.main else 'enclosing function'
                self.debug(f"switch output to {target}")
            return
        for _ in range(1 + block.extra_closers):
            self.emit(CloseScope())

    def continue_chain(self, stmt: Union[ElifStmt, ElseStmt]):
        keyword = 'elif' if isinstance(stmt, ElifStmt) else 'else'
        block = self.blocks.top
        if block is None or not block.kind.continues_chain:
            self.error(f"'{keyword}' without matching 'if'")
            return
        if isinstance(stmt, ElifStmt):
            self.emit(OpenElif(self.codegen.expression(stmt.condition)))
            block.kind = BlockKind.ELIF
        else:
            self.emit(OpenElse())
            block.kind = BlockKind.ELSE
        if self.debug_level >= 1:
            self.debug(f"continue chain of block opened at line {block.opened_at_line} with '{keyword}'")

    def define_function(self, stmt: FuncDecl, line: SourceLine):
        name = stmt.name
        if name == 'main':
            self.warning("'func main' is ignored; top-level statements already form the program entry point")
            closer = Closer.BRACE if stmt.opens_brace else Closer.INDENT
            self.pending_main.append(Block(BlockKind.FUNC, line.indent, line.number, closer))
            return
        fn = Function(name or '_', line.number, OutputStream(self.limits.max_fragments))
        # a function outside the table still collects its body, which is discarded
        if self.blocks.in_function():
            if name is not None:
                self.error(f"function '{name}' cannot be defined inside another function")
        elif name is not None:
            if name in self.functions:
                self.error(f"function '{name}' already defined at line {self.functions.get(name).line}")
            if not self.functions.add(fn):
                self.exhaust('functions', f"too many functions (limit {self.functions.capacity})")
        if self.open_block(BlockKind.FUNC, line, stmt.opens_brace, [], function=fn):
            self.current = fn.body
            if self.debug_level >= 1:
                self.debug(f"switch output to function {fn.name}")

    def flush(self):
        """Close every block still open at the end of the input."""
        while self.blocks:
            block = self.blocks.pop()
            if block.uses_braces or block.closed_by_end:
                self.diagnostics.error(f"unclosed {block.describe()}", block.opened_at_line)
            self.emit_close(block)

    # Names

    def declare(self, stmt: VarDecl):
        if stmt.name is None:
            return
        if stmt.type_name is None:
            vtype = infer(stmt.value, self.symbols) if stmt.value else VarType.INT
        else:
            vtype = VarType.from_keyword(stmt.type_name)
        fragments = self.codegen.declaration(stmt, vtype, self.line_number)
        self.register(stmt.name, vtype, stmt.is_const)
        for fragment in fragments:
            self.emit(fragment)

    def register(self, name: str, vtype: VarType, is_const: bool = False):
        if not self.symbols.register(name, vtype, is_const):
            self.exhaust('variables', f"too many variables (limit {self.symbols.capacity})")
            return
        if self.debug_level >= 2:
            self.debug(f"register {name}: {'const ' if is_const else ''}{vtype}")


def transpile(source: str, mode: Union[str, Mode] = DEFAULT_MODE, debug_level: int = 0) -> CompileResult:
    return Transpiler(mode, debug_level=debug_level).transpile(source)


def compile_file(path: Union[str, Path], mode: Union[str, Mode] = DEFAULT_MODE,
                 debug_level: int = 0) -> CompileResult:
    with open(path, 'r', encoding='utf-8') as f:
        source = f.read()
    return transpile(source, mode, debug_level)
