"""
Indented ``key: value`` metadata blocks.

A block is a run of lines indented by at least a given width:

    2024-01-01 open Assets:Cash USD
      description: "Main account"
      priority: high
      active: true
      balance: 1000.50

Values are resolved in order: a quoted string stays a string; otherwise
the trimmed rest of the line is coerced to int, float, bool, ``None`` (when
empty) or left as a raw string. Blank lines inside a block are skipped; the
block ends at the first line that is not an indented ``key:`` pair.
"""

from __future__ import annotations

import re

from .combinators import consume_newline, parse_quoted_string, parse_regex
from .cursor import (
    Cursor,
    ParseResult,
    advance,
    is_at_end,
    line_indent,
    peek_char,
    rest_of_line,
    skip_to_end_of_line,
)
from .ir import Meta, MetaValue

META_KEY = re.compile(r"([a-zA-Z_][a-zA-Z0-9_-]*)[ \t]*:(?:[ \t]+|(?=\n)|\Z)")
INTEGER = re.compile(r"-?\d+")
FLOAT = re.compile(r"-?\d*\.\d+")


def coerce_meta_value(raw: str) -> MetaValue:
    """Coerce an unquoted metadata value."""
    if INTEGER.fullmatch(raw):
        return int(raw)
    if FLOAT.fullmatch(raw):
        return float(raw)
    if raw in ("true", "false"):
        return raw == "true"
    return raw or None


def parse_meta_pair(cursor: Cursor) -> ParseResult[tuple[str, MetaValue]] | None:
    """
    Parse one ``key: value`` pair starting exactly at the cursor.

    The returned cursor sits at the end of the line, before its newline.
    """
    key = parse_regex(cursor, META_KEY)
    if key is None:
        return None

    current = key.cursor
    value: MetaValue
    quoted = parse_quoted_string(current)
    if quoted:
        value = quoted.value
        current = quoted.cursor
    else:
        raw = rest_of_line(current)
        value = coerce_meta_value(raw.strip())

    return ParseResult((key.value.group(1), value), skip_to_end_of_line(current))


def parse_metadata(cursor: Cursor, indent: int) -> ParseResult[Meta] | None:
    """
    Parse a metadata block whose lines are indented by at least ``indent``.

    Returns ``None`` when no pair was read, so callers can tell "no
    metadata" apart from an empty mapping.
    """
    meta: Meta = {}
    current = cursor

    while not is_at_end(current):
        width = line_indent(current)
        line_body = advance(current, width)

        if peek_char(line_body) == "\n":
            current = advance(line_body, 1)
            continue
        if is_at_end(line_body) or width < indent:
            break

        pair = parse_meta_pair(line_body)
        if pair is None:
            break

        key, value = pair.value
        meta[key] = value
        current = consume_newline(pair.cursor)

    if not meta:
        return None
    return ParseResult(meta, current)
