"""
Immutable source cursor for beanparse.

Every parse step returns a new :class:`Cursor`; backtracking is simply
reusing an earlier one. ``line`` and ``column`` are 1-indexed and always
agree with the number of newlines consumed up to ``position``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Cursor:
    """Position within a source text."""

    text: str
    position: int = 0
    line: int = 1
    column: int = 1
    source: str = "stdin"

    def __repr__(self) -> str:
        return f"Cursor({self.source}:{self.line}:{self.column} @{self.position})"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Successful parse: the recognized value and the cursor after it."""

    value: T
    cursor: Cursor


def create_cursor(text: str, source: str = "stdin") -> Cursor:
    """Create a cursor at the start of ``text``."""
    return Cursor(text=text, source=source)


def advance(cursor: Cursor, chars: int) -> Cursor:
    """Return a cursor moved forward by ``chars`` characters."""
    if chars <= 0:
        return cursor
    start = cursor.position
    end = min(start + chars, len(cursor.text))
    newlines = cursor.text.count("\n", start, end)
    if newlines:
        last_newline = cursor.text.rfind("\n", start, end)
        column = end - last_newline
    else:
        column = cursor.column + (end - start)
    return replace(cursor, position=end, line=cursor.line + newlines, column=column)


def peek_char(cursor: Cursor, offset: int = 0) -> str:
    """Character at the cursor (plus ``offset``), or ``""`` past the end."""
    index = cursor.position + offset
    if 0 <= index < len(cursor.text):
        return cursor.text[index]
    return ""


def peek_string(cursor: Cursor, length: int) -> str:
    return cursor.text[cursor.position : cursor.position + length]


def is_at_end(cursor: Cursor) -> bool:
    return cursor.position >= len(cursor.text)


def remaining(cursor: Cursor) -> str:
    """Everything from the cursor to the end of the text."""
    return cursor.text[cursor.position :]


def rest_of_line(cursor: Cursor) -> str:
    """Text from the cursor up to (not including) the next newline."""
    end = cursor.text.find("\n", cursor.position)
    if end == -1:
        end = len(cursor.text)
    return cursor.text[cursor.position : end]


def skip_to_end_of_line(cursor: Cursor) -> Cursor:
    """Move to the next newline (not past it), or to the end of the text."""
    return advance(cursor, len(rest_of_line(cursor)))


def skip_line(cursor: Cursor) -> Cursor:
    """Move past the current line including its terminating newline."""
    current = skip_to_end_of_line(cursor)
    if peek_char(current) == "\n":
        current = advance(current, 1)
    return current


def line_indent(cursor: Cursor) -> int:
    """Count of leading spaces/tabs on the line starting at the cursor."""
    width = 0
    while peek_char(cursor, width) in (" ", "\t"):
        width += 1
    return width


def next_line_indent(cursor: Cursor) -> int | None:
    """Indent width of the line after the current one, ``None`` at end of text."""
    newline = cursor.text.find("\n", cursor.position)
    if newline == -1:
        return None
    following = advance(cursor, newline + 1 - cursor.position)
    if is_at_end(following):
        return None
    width = line_indent(following)
    # A whitespace-only line carries no body
    if peek_char(following, width) in ("\n", ""):
        return 0
    return width


def skip_blank_lines(cursor: Cursor) -> Cursor:
    """Skip whitespace-only lines; stop at the start of the first other line."""
    current = cursor
    while not is_at_end(current):
        width = line_indent(current)
        if peek_char(current, width) != "\n":
            break
        current = skip_line(current)
    return current
