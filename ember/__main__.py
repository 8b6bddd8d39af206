"""CLI entry point for the Ember transpiler.

Usage:
    python -m ember [-v|-vv|-vvv] <program_file> [mode]
    python -m ember [-v...] --emit-ir <program_file>
    python -m ember [-v...] --ir <ir_json_file> [mode]

Modes: optimized (default), raw, debug, debug_opt, debug_raw

Options:
  -v            Increase debug verbosity (can be repeated)
  -o FILE       Path of the generated C file (default: out.c)
  -b FILE       Path of the built binary (default: program)
  --no-build    Only write the C file; do not invoke the C compiler
  --emit-ir     Transpile the given .em file and emit an IR JSON file
  --ir          Assemble and build a previously emitted IR JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero; the debug modes always trace. Diagnostics
are reported on stderr. The C file is only written, and the compiler only
invoked, when the program has no errors.
"""

import argparse
import json
import sys
import time
from pathlib import Path

from .assembler import assemble
from .compiler import Transpiler, CompileResult
from .config import MODES, DEFAULT_MODE, get_mode
from .errors import ToolchainError
from .ir_json import program_to_obj, program_from_obj
from .toolchain import DEFAULT_C_FILE, DEFAULT_BINARY, write_source, build, build_program, run


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def report(result: CompileResult) -> None:
    if len(result.diagnostics) or result.diagnostics.dropped:
        print(result.report(), file=sys.stderr)


def selected_mode(args: argparse.Namespace) -> str:
    # with --emit-ir/--ir the mode lands in the first positional slot
    if args.program in MODES:
        return args.program
    return args.mode


def finish(binary: str, mode_name: str, start: float) -> None:
    mode = get_mode(mode_name)
    if mode.auto_run:
        try:
            sys.exit(run(binary))
        except ToolchainError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    print(f"Compiled: {binary} ({time.perf_counter() - start:.3f}s)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Ember to C transpiler")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('-o', dest='c_file', default=DEFAULT_C_FILE, metavar='FILE', help='generated C file')
    parser.add_argument('-b', dest='binary', default=DEFAULT_BINARY, metavar='FILE', help='built binary')
    parser.add_argument('--no-build', action='store_true', help='write the C file without compiling it')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--emit-ir', metavar='EMBER_FILE', help='emit IR JSON for the given .em file')
    group.add_argument('--ir', metavar='IR_JSON_FILE', help='assemble and build an IR JSON file')
    parser.add_argument('program', nargs='?', help='Ember program file (.em) to compile')
    parser.add_argument('mode', nargs='?', default=DEFAULT_MODE, choices=list(MODES), help='operating mode')
    args = parser.parse_args(argv)
    start = time.perf_counter()

    # Emit IR mode
    if args.emit_ir:
        program_file = Path(args.emit_ir)
        source = read_source(program_file)
        result = Transpiler(selected_mode(args), debug_level=args.v).transpile(source)
        report(result)
        if not result.ok:
            sys.exit(1)
        obj = program_to_obj(result.functions, result.main)
        out_path = program_file.with_name(program_file.name + '.ir.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(obj, out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    # Build from IR JSON
    if args.ir:
        ir_path = Path(args.ir)
        mode_name = selected_mode(args)
        try:
            functions, main_stream = program_from_obj(json.loads(read_source(ir_path)))
        except (TypeError, ValueError, KeyError) as e:
            print(f"Error: invalid IR file {ir_path}: {e}", file=sys.stderr)
            sys.exit(1)
        write_source(assemble(functions, main_stream), args.c_file)
        if args.no_build:
            print(args.c_file)
            return
        try:
            build(args.c_file, args.binary, get_mode(mode_name))
        except ToolchainError as e:
            print(f"Error: {e}", file=sys.stderr)
            if e.output:
                print(e.output, file=sys.stderr, end='')
            sys.exit(1)
        finish(args.binary, mode_name, start)
        return

    # Default: transpile and build a source file
    if not args.program:
        parser.error('missing program file; or use --emit-ir/--ir')
    source = read_source(Path(args.program))
    result = Transpiler(args.mode, debug_level=args.v).transpile(source)
    if not result.ok:
        report(result)
        print('Compilation aborted due to errors.', file=sys.stderr)
        sys.exit(1)
    if args.no_build:
        write_source(result.c_source, args.c_file)
        report(result)
        print(args.c_file)
        return
    built = build_program(result, args.c_file, args.binary)
    report(result)
    if not built:
        sys.exit(1)
    finish(args.binary, args.mode, start)


if __name__ == '__main__':
    main()
