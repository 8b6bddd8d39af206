from typing import Optional


class EmberError(Exception):
    """Base class for errors raised at the boundary of the Ember toolchain."""


class ToolchainError(EmberError):
    """Raised when the C compiler is missing or rejects the generated code."""
    def __init__(self, message: str, returncode: Optional[int] = None, output: str = ''):
        super().__init__(message)
        self.returncode = returncode
        self.output = output
