"""Line reader for Ember source files.

Ember is line oriented: every significant physical line holds exactly one
statement. The reader splits the input into lines, removes `#` comments
(a `#` inside a string or character literal is kept) and surrounding
whitespace, and yields only the lines that still have content. Line
numbers count every physical line, including blank and comment-only
ones, so diagnostics point at the original source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

TAB_WIDTH = 4


@dataclass(frozen=True)
class SourceLine:
    number: int
    indent: int
    text: str


def strip_comment(line: str) -> str:
    """Remove a trailing `#` comment, respecting string and char literals."""
    quote = ''
    escape = False
    for i, c in enumerate(line):
        if quote:
            if escape:
                escape = False
            elif c == '\\':
                escape = True
            elif c == quote:
                quote = ''
            continue
        if c == '"' or c == '\'':
            quote = c
        elif c == '#':
            return line[:i]
    return line


def indentation(line: str) -> int:
    """Width of the leading whitespace; a tab counts as four spaces."""
    count = 0
    for c in line:
        if c == ' ':
            count += 1
        elif c == '\t':
            count += TAB_WIDTH
        else:
            break
    return count


class LineReader:
    """Restartable iterator over the significant lines of a source text."""

    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[SourceLine]:
        for number, raw in enumerate(self.source.split('\n'), start=1):
            raw = raw.rstrip('\r')
            code = strip_comment(raw)
            text = code.strip()
            if not text:
                continue
            yield SourceLine(number, indentation(code), text)
