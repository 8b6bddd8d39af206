"""Native C toolchain wrapper.

Writes the generated translation unit to disk, hands it to the C
compiler with the flags of the selected mode and optionally runs the
resulting binary. The compiler executable comes from the `CC`
environment variable and defaults to `gcc`.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import List, Union

from .compiler import CompileResult
from .config import Mode
from .errors import ToolchainError

DEFAULT_CC = 'gcc'
DEFAULT_C_FILE = 'out.c'
DEFAULT_BINARY = 'program'


def compiler_command() -> str:
    return os.environ.get('CC') or DEFAULT_CC


def build_command(c_path: Union[str, Path], output: Union[str, Path], mode: Mode) -> List[str]:
    return [compiler_command(), *mode.cflags, str(c_path), '-o', str(output), '-lm']


def write_source(c_source: str, c_path: Union[str, Path] = DEFAULT_C_FILE) -> Path:
    path = Path(c_path)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(c_source)
    return path


def build(c_path: Union[str, Path], output: Union[str, Path], mode: Mode) -> Path:
    """Compile `c_path` into the executable `output`.

    Raises `ToolchainError` if the compiler cannot be found or exits
    with a non-zero status; the compiler's output is attached.
    """
    cmd = build_command(c_path, output, mode)
    if shutil.which(cmd[0]) is None:
        raise ToolchainError(f"C compiler '{cmd[0]}' not found")
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ToolchainError(f"cannot run C compiler '{cmd[0]}': {e}") from e
    if proc.returncode != 0:
        raise ToolchainError(f"C compiler failed with exit status {proc.returncode}",
                             proc.returncode, proc.stderr or proc.stdout)
    return Path(output)


def run(binary: Union[str, Path]) -> int:
    """Run a built program in the foreground and return its exit status."""
    path = str(binary)
    if os.sep not in path:
        # a bare name would be looked up on PATH
        path = os.path.join(os.curdir, path)
    try:
        return subprocess.run([path]).returncode
    except OSError as e:
        raise ToolchainError(f"cannot run '{path}': {e}") from e


def build_program(result: CompileResult, c_path: Union[str, Path] = DEFAULT_C_FILE,
                  binary: Union[str, Path] = DEFAULT_BINARY) -> bool:
    """Write and compile a successful transpilation.

    Nothing is written when the result carries errors. A toolchain
    failure is recorded on the result's diagnostics as an error at
    line 0. Returns True if a binary was produced.
    """
    if not result.ok:
        return False
    write_source(result.c_source, c_path)
    try:
        build(c_path, binary, result.mode)
    except ToolchainError as e:
        message = str(e)
        if e.output.strip():
            message += ': ' + e.output.strip().splitlines()[0]
        result.diagnostics.error(message, 0)
        return False
    return True
