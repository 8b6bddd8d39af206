"""Type-directed generation of C fragments from Ember statements.

The generator consults the symbol table and the inference engine but
never changes either; registering names is the dispatcher's job. Every
expression that ends up in the output goes through `expression`, which
applies the rewrites the C runtime needs:

* `time.now()`, `date.now()` and `clock.now()` become runtime calls,
* a list or tuple name directly followed by `[` indexes its `.data`,
* `len(x)` becomes the length accessor for the type of `x`,
* `dget(d, k)` passes a known dictionary by address.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from lark.exceptions import UnexpectedInput

from .ast import VarDecl, ForRange, ForIn, IntrinsicCall, RawStmt
from .diagnostics import DiagnosticCollector
from .environment import SymbolTable
from .inference import infer
from .ir import (
    Fragment, Declare, PrintFormat, PrintCall, CallStmt, Statement,
    OpenFor, OpenScope,
)
from .parser import tokenize_line, split_top_level, is_identifier
from .runtime import INTRINSICS, PRINTERS, substitute_time
from .types import VarType, c_type, zero_value


def member(source: str, name: str) -> str:
    if is_identifier(source):
        return f"{source}.{name}"
    return f"({source}).{name}"


class CodeGenerator:
    def __init__(self, symbols: SymbolTable, diagnostics: DiagnosticCollector):
        self.symbols = symbols
        self.diagnostics = diagnostics

    def expression(self, text: str) -> str:
        text = substitute_time(text)
        try:
            tokens = tokenize_line(text)
        except UnexpectedInput:
            return text
        edits: List[Tuple[int, int, str]] = []
        for i, tok in enumerate(tokens):
            if tok.type != 'NAME':
                continue
            if i > 0 and tokens[i - 1].value in ('.', '->'):
                continue
            following = [t.value for t in tokens[i + 1:i + 4]]
            vtype = self.symbols.lookup(tok.value)
            if following[:1] == ['['] and vtype in (VarType.LIST, VarType.TUPLE):
                edits.append((tok.end_pos, tok.end_pos, '.data'))
                continue
            if following[:1] != ['('] or len(following) < 3 or tokens[i + 2].type != 'NAME':
                continue
            arg = tokens[i + 2]
            arg_type = self.symbols.lookup(arg.value)
            if tok.value == 'dget' and arg_type is VarType.DICT and following[2] == ',':
                edits.append((arg.start_pos, arg.start_pos, '&'))
            elif tok.value == 'len' and following[2] == ')':
                replacement = self.length(arg.value, arg_type)
                if replacement is not None:
                    edits.append((tok.start_pos, tokens[i + 3].end_pos, replacement))
        for start, end, replacement in sorted(edits, reverse=True):
            text = text[:start] + replacement + text[end:]
        return text

    @staticmethod
    def length(name: str, vtype: VarType) -> Optional[str]:
        if vtype is VarType.LIST:
            return f"list_len(&{name})"
        if vtype in (VarType.TUPLE, VarType.DICT):
            return f"{name}.size"
        if vtype is VarType.STRING:
            return f"(int)strlen({name})"
        return None

    def items(self, inner: str) -> List[str]:
        try:
            parts = split_top_level(inner)
        except UnexpectedInput:
            parts = inner.split(',')
        return [self.expression(p) for p in parts if p.strip()]

    def container_literal(self, text: str, vtype: VarType) -> Optional[str]:
        """Lower a `[...]` or `(a, b)` literal to a runtime constructor call."""
        text = text.strip()
        if vtype is VarType.LIST and text.startswith('[') and text.endswith(']'):
            items = self.items(text[1:-1])
            if not items:
                return 'new_list()'
            return f"list_of({len(items)}, {', '.join(items)})"
        if vtype is VarType.TUPLE and text.startswith('(') and text.endswith(')') and ',' in text:
            items = self.items(text[1:-1])
            return f"tuple_of({len(items)}, {', '.join(items)})"
        return None

    def declaration(self, stmt: VarDecl, vtype: VarType, line: int) -> List[Fragment]:
        name = stmt.name
        ctype = c_type(vtype)
        const = stmt.is_const and not vtype.is_container
        if stmt.value is None:
            return [Declare(ctype, name, zero_value(vtype), const)]
        value = stmt.value.strip()
        if vtype is VarType.DICT and value.startswith('{') and value.endswith('}'):
            return self.dict_literal(name, value[1:-1], line)
        literal = self.container_literal(value, vtype)
        init = literal if literal is not None else self.expression(value)
        return [Declare(ctype, name, init, const)]

    def dict_literal(self, name: str, inner: str, line: int) -> List[Fragment]:
        fragments: List[Fragment] = [Declare('Dict', name, 'new_dict()')]
        for entry in split_top_level(inner):
            if not entry:
                continue
            parts = split_top_level(entry, ':')
            if len(parts) != 2 or not parts[0] or not parts[1]:
                self.diagnostics.error(f"invalid entry '{entry}' in dict '{name}'; expected KEY: VALUE", line)
                continue
            key, value = parts
            fragments.append(CallStmt('dset', [f"&{name}", self.expression(key), self.expression(value)]))
        return fragments

    def print_(self, expr: str) -> Fragment:
        vtype = infer(expr, self.symbols)
        if vtype in PRINTERS:
            arg = self.container_literal(expr, vtype) or self.expression(expr)
            return PrintCall(PRINTERS[vtype], arg)
        arg = self.expression(expr)
        if vtype is VarType.STRING:
            return PrintFormat('%s', arg)
        if vtype is VarType.BOOL:
            return PrintFormat('%s', f'({arg}) ? "true" : "false"')
        if vtype is VarType.FLOAT:
            return PrintFormat('%f', arg)
        return PrintFormat('%d', f"(int)({arg})")

    def for_range(self, stmt: ForRange) -> OpenFor:
        var = stmt.var
        start = self.expression(stmt.start)
        end = self.expression(stmt.end)
        step = stmt.step.strip()
        if step == '1':
            return OpenFor(f"int {var} = {start}", f"{var} <= {end}", f"{var}++")
        compare = '>=' if step.startswith('-') else '<='
        return OpenFor(f"int {var} = {start}", f"{var} {compare} {end}", f"{var} += {self.expression(step)}")

    def for_in(self, stmt: ForIn, line: int) -> Tuple[List[Fragment], int, VarType]:
        """Desugar `for VAR in ITERABLE` into an index loop.

        Returns the fragments, the number of extra scopes opened before
        the loop itself, and the type the loop variable is bound to.
        """
        var = stmt.var
        iterable = stmt.iterable
        if iterable.startswith('"'):
            vtype = VarType.STRING
        else:
            vtype = infer(iterable, self.symbols)
        index = f"_idx_{var}_{line}"
        if vtype in (VarType.LIST, VarType.TUPLE):
            fragments: List[Fragment] = []
            extra = 0
            source = self.container_literal(iterable, vtype)
            if source is not None:
                helper = f"_it_{var}_{line}"
                fragments += [OpenScope(), Declare(c_type(vtype), helper, source)]
                source = helper
                extra = 1
            else:
                source = self.expression(iterable)
            fragments += [
                OpenFor(f"int {index} = 0", f"{index} < {member(source, 'size')}", f"{index}++"),
                Declare('int', var, f"{member(source, 'data')}[{index}]"),
            ]
            return fragments, extra, VarType.INT
        if vtype is VarType.DICT:
            source = self.expression(iterable)
            fragments = [
                OpenFor(f"int {index} = 0", f"{index} < {member(source, 'size')}", f"{index}++"),
                Declare('char*', var, f"{member(source, 'keys')}[{index}]"),
            ]
            return fragments, 0, VarType.STRING
        if vtype is not VarType.STRING:
            self.diagnostics.warning(f"cannot iterate over '{iterable}' of type {vtype}; treating it as a string", line)
        helper = f"_str_{var}_{line}"
        fragments = [
            OpenScope(),
            Declare('const char*', helper, self.expression(iterable)),
            OpenFor(f"int {index} = 0", f"{helper}[{index}] != '\\0'", f"{index}++"),
            Declare('int', var, f"{helper}[{index}]"),
        ]
        return fragments, 1, VarType.INT

    def intrinsic(self, stmt: IntrinsicCall, line: int) -> Optional[CallStmt]:
        known = INTRINSICS[stmt.name]
        args = stmt.args
        if len(args) != known.arity:
            self.diagnostics.error(f"{known.name}() expects {known.arity} arguments, got {len(args)}", line)
        if not args:
            return None
        container = args[0]
        if is_identifier(container):
            vtype = self.symbols.lookup(container)
            if vtype not in (known.container, VarType.UNKNOWN):
                self.diagnostics.error(
                    f"{known.name}() expects a {known.container} as its first argument, but '{container}' is {vtype}",
                    line)
            target = f"&{container}"
        elif container.startswith('&'):
            target = container
        else:
            target = f"&({self.expression(container)})"
        return CallStmt(known.name, [target] + [self.expression(a) for a in args[1:]])

    def raw(self, stmt: RawStmt) -> Statement:
        text = stmt.text.rstrip()
        while text.endswith(';'):
            text = text[:-1].rstrip()
        return Statement(self.expression(text))
