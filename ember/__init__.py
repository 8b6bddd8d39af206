# Ember language package
# This package provides a transpiler from the Ember scripting language to C.
from .compiler import transpile, compile_file, Transpiler, CompileResult
from .config import Mode, Limits, MODES
from .errors import EmberError, ToolchainError

__all__ = [
    'transpile',
    'compile_file',
    'Transpiler',
    'CompileResult',
    'Mode',
    'Limits',
    'MODES',
    'EmberError',
    'ToolchainError',
]
