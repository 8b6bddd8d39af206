"""Operating modes and capacity limits for the Ember transpiler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class Mode:
    name: str
    auto_close: bool   # close indent blocks on dedent
    trace: bool        # write a full trace of parse/emit/block events
    auto_run: bool     # run the binary after a successful build
    cflags: Tuple[str, ...]

    @property
    def raw(self) -> bool:
        return not self.auto_close


MODES: Dict[str, Mode] = {
    'optimized': Mode('optimized', True, False, False, ('-Ofast', '-w')),
    'raw': Mode('raw', False, False, False, ('-O0',)),
    'debug': Mode('debug', True, True, True, ('-O0', '-g')),
    'debug_opt': Mode('debug_opt', True, True, True, ('-Ofast', '-g')),
    'debug_raw': Mode('debug_raw', False, True, True, ('-O0', '-g')),
}

DEFAULT_MODE = 'optimized'

# Trace level used by the debug modes.
TRACE_LEVEL = 3


def get_mode(name: str) -> Mode:
    try:
        return MODES[name]
    except KeyError:
        raise ValueError(f"unknown mode {name!r}; expected one of {', '.join(MODES)}") from None


@dataclass(frozen=True)
class Limits:
    """Capacity of every growable structure in one compilation."""
    max_vars: int = 512
    max_depth: int = 128
    max_functions: int = 256
    max_diagnostics: int = 256
    max_fragments: int = 65536
