"""Diagnostic collection and reporting.

The transpiler never stops at the first problem. Every error and warning
found while reading a program is appended to a `DiagnosticCollector`,
which keeps them in discovery order. Only errors gate emission of the C
file; warnings are informational.

The collector is bounded. Once `capacity` entries have been recorded,
further diagnostics are counted but not stored. The collector still
remembers whether a dropped entry was an error, so a flood of warnings
cannot hide a later error from the gate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List


class Severity(Enum):
    ERROR = 'error'
    WARNING = 'warning'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    message: str
    line: int
    severity: Severity

    def __str__(self) -> str:
        return f"line {self.line}: {self.severity}: {self.message}"


class DiagnosticCollector:
    def __init__(self, capacity: int = 256):
        self.capacity = capacity
        self.entries: List[Diagnostic] = []
        self.dropped = 0
        self._error_seen = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.entries)

    def add(self, message: str, line: int, severity: Severity) -> bool:
        """Record a diagnostic; return False if the collector is full."""
        if severity is Severity.ERROR:
            self._error_seen = True
        if len(self.entries) >= self.capacity:
            self.dropped += 1
            return False
        self.entries.append(Diagnostic(message, line, severity))
        return True

    def error(self, message: str, line: int) -> bool:
        return self.add(message, line, Severity.ERROR)

    def warning(self, message: str, line: int) -> bool:
        return self.add(message, line, Severity.WARNING)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.entries if d.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return self._error_seen


def format_report(diagnostics: DiagnosticCollector) -> str:
    """Render the user-visible summary of a compilation.

    The summary line carries the totals, followed by the errors and then
    the warnings, each group in discovery order.
    """
    errors = diagnostics.errors
    warnings = diagnostics.warnings
    lines = [f"{len(errors)} error(s), {len(warnings)} warning(s)"]
    if errors:
        lines.append('Errors:')
        lines.extend(f"  {d}" for d in errors)
    if warnings:
        lines.append('Warnings:')
        lines.extend(f"  {d}" for d in warnings)
    if diagnostics.dropped:
        lines.append(f"({diagnostics.dropped} further diagnostic(s) suppressed)")
    return '\n'.join(lines)
