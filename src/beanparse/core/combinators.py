"""
Primitive recognizers for the ledger format.

Every combinator takes a :class:`Cursor` and returns a
:class:`ParseResult` with the recognized value and the advanced cursor, or
``None`` when the input does not match. Combinators never mutate their
input, so callers backtrack by reusing the cursor they already hold.

Whitespace skipping never crosses a newline; consuming a line terminator
is always an explicit :func:`parse_newline` step.

The only fatal failure is an unterminated quoted string, which raises
:class:`ParseError` and aborts the whole parse.
"""

from __future__ import annotations

import re
from typing import Any

from .cursor import (
    Cursor,
    ParseResult,
    advance,
    is_at_end,
    peek_char,
    peek_string,
    rest_of_line,
)
from .errors import extract_snippet, make_parse_error
from .ir import Amount, TagOrLink

# Patterns are always applied with ``Pattern.match(text, pos)`` so they are
# anchored at the cursor.
DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
ACCOUNT = re.compile(r"[A-Z][A-Za-z0-9:_-]+")
FLAG = re.compile(r"[*!]")
NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
BOOLEAN = re.compile(r"(true|false|yes|no|1|0)(?![A-Za-z0-9_])", re.IGNORECASE)
CURRENCY = re.compile(r"[A-Z][A-Z0-9_]*")
AMOUNT_CURRENCY = re.compile(r"[A-Z0-9_]+")
UNQUOTED_STRING = re.compile(r"\S+")
ARRAY_ITEM = re.compile(r"[^\s,;#^\"][^\s,;]*")
EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
TAG = re.compile(r"#([a-zA-Z0-9_-]+)")
LINK = re.compile(r"\^([a-zA-Z0-9_-]+)")
HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]*")

_ESCAPES = {"n": "\n", "t": "\t"}


def parse_regex(cursor: Cursor, pattern: re.Pattern[str]) -> ParseResult[re.Match[str]] | None:
    """Match ``pattern`` exactly at the cursor."""
    match = pattern.match(cursor.text, cursor.position)
    if match is None:
        return None
    return ParseResult(match, advance(cursor, match.end() - match.start()))


def parse_literal(cursor: Cursor, literal: str) -> ParseResult[str] | None:
    if literal and peek_string(cursor, len(literal)) == literal:
        return ParseResult(literal, advance(cursor, len(literal)))
    return None


def keyword(word: str):
    """Field parser accepting exactly ``word``, used for directive keywords."""

    def parse_keyword(cursor: Cursor) -> ParseResult[str] | None:
        result = parse_literal(cursor, word)
        if result is None:
            return None
        # "open" must not match the start of "opening"
        following = peek_char(result.cursor)
        if following and not following.isspace():
            return None
        return result

    return parse_keyword


def skip_whitespace(cursor: Cursor) -> Cursor:
    """Skip spaces and tabs, stopping at a newline."""
    match = HORIZONTAL_WHITESPACE.match(cursor.text, cursor.position)
    assert match is not None
    return advance(cursor, match.end() - match.start())


def parse_newline(cursor: Cursor) -> ParseResult[str] | None:
    if peek_char(cursor) == "\n":
        return ParseResult("\n", advance(cursor, 1))
    return None


def consume_newline(cursor: Cursor) -> Cursor:
    """Consume one newline if present."""
    result = parse_newline(cursor)
    return result.cursor if result else cursor


def parse_quoted_string(cursor: Cursor) -> ParseResult[str] | None:
    """
    Parse a double-quoted string.

    Supports ``\\"``, ``\\n`` and ``\\t`` escapes; any other escaped
    character is passed through literally.

    Raises:
        ParseError: If the closing quote is never found
    """
    if peek_char(cursor) != '"':
        return None

    text = cursor.text
    index = cursor.position + 1
    chars: list[str] = []

    while index < len(text) and text[index] != '"':
        char = text[index]
        if char == "\\":
            index += 1
            if index < len(text):
                escaped = text[index]
                chars.append(_ESCAPES.get(escaped, escaped))
                index += 1
        else:
            chars.append(char)
            index += 1

    if index >= len(text):
        raise make_parse_error(
            f"Unterminated string at line {cursor.line}",
            cursor.source,
            cursor.line,
            cursor.column,
            snippet=extract_snippet(text, cursor.line),
        )

    return ParseResult("".join(chars), advance(cursor, index + 1 - cursor.position))


def parse_date(cursor: Cursor) -> ParseResult[str] | None:
    """Parse a ``YYYY-MM-DD`` date (digits only, no calendar check)."""
    result = parse_regex(cursor, DATE)
    return ParseResult(result.value.group(0), result.cursor) if result else None


def parse_number(cursor: Cursor) -> ParseResult[float] | None:
    result = parse_regex(cursor, NUMBER)
    return ParseResult(float(result.value.group(0)), result.cursor) if result else None


def parse_currency(cursor: Cursor) -> ParseResult[str] | None:
    """Parse a standalone currency code; must start with a letter."""
    result = parse_regex(cursor, CURRENCY)
    return ParseResult(result.value.group(0), result.cursor) if result else None


def parse_amount(cursor: Cursor) -> ParseResult[Amount] | None:
    """
    Parse ``<number> <currency>``.

    The currency may directly follow the number (``1000EUR``) and, unlike a
    standalone currency, may start with a digit or underscore.
    """
    number = parse_number(cursor)
    if number is None:
        return None

    current = skip_whitespace(number.cursor)
    currency = parse_regex(current, AMOUNT_CURRENCY)
    if currency is None:
        return None

    amount = Amount(value=number.value, currency=currency.value.group(0))
    return ParseResult(amount, currency.cursor)


def parse_account(cursor: Cursor) -> ParseResult[str] | None:
    result = parse_regex(cursor, ACCOUNT)
    return ParseResult(result.value.group(0), result.cursor) if result else None


def parse_boolean(cursor: Cursor) -> ParseResult[bool] | None:
    result = parse_regex(cursor, BOOLEAN)
    if result is None:
        return None
    word = result.value.group(1).lower()
    return ParseResult(word in ("true", "yes", "1"), result.cursor)


def parse_string_field(cursor: Cursor) -> ParseResult[str] | None:
    """A quoted string, or else the next run of non-whitespace characters."""
    quoted = parse_quoted_string(cursor)
    if quoted:
        return quoted

    result = parse_regex(cursor, UNQUOTED_STRING)
    return ParseResult(result.value.group(0), result.cursor) if result else None


def parse_array(cursor: Cursor) -> ParseResult[list[str]] | None:
    """
    Parse a list of strings separated by commas and/or whitespace.

    The list stops at the end of the line, at a comment, or at the first
    tag/link token so trailing annotations stay available to the caller.
    """
    values: list[str] = []
    current = cursor

    while not is_at_end(current):
        item: ParseResult[Any] | None = parse_quoted_string(current)
        if item is None:
            match = parse_regex(current, ARRAY_ITEM)
            item = ParseResult(match.value.group(0), match.cursor) if match else None
        if item is None:
            break

        values.append(item.value)
        current = item.cursor
        after = skip_whitespace(current)

        comma = parse_literal(after, ",")
        if comma:
            after = skip_whitespace(comma.cursor)
        elif after.position == current.position:
            break
        current = after

    if not values:
        return None
    return ParseResult(values, current)


def parse_email(cursor: Cursor) -> ParseResult[str] | None:
    result = parse_regex(cursor, EMAIL)
    return ParseResult(result.value.group(0), result.cursor) if result else None


def parse_tag_or_link(cursor: Cursor) -> ParseResult[TagOrLink] | None:
    """Parse one ``#tag`` or ``^link`` token."""
    tag = parse_regex(cursor, TAG)
    if tag:
        return ParseResult(TagOrLink(type="tag", value=tag.value.group(1)), tag.cursor)
    link = parse_regex(cursor, LINK)
    if link:
        return ParseResult(TagOrLink(type="link", value=link.value.group(1)), link.cursor)
    return None


def parse_tags_and_links(cursor: Cursor) -> ParseResult[list[TagOrLink]] | None:
    """Parse a whitespace-separated run of tags and links in source order."""
    items: list[TagOrLink] = []
    current = cursor

    while True:
        probe = skip_whitespace(current)
        item = parse_tag_or_link(probe)
        if item is None:
            break
        items.append(item.value)
        current = item.cursor

    if not items:
        return None
    return ParseResult(items, current)


def split_tags_and_links(items: list[TagOrLink]) -> tuple[list[str], list[str]]:
    """Split a mixed tag/link sequence into (tags, links), preserving order."""
    tags = [item.value for item in items if item.type == "tag"]
    links = [item.value for item in items if item.type == "link"]
    return tags, links


def find_comment_start(cursor: Cursor) -> Cursor | None:
    """
    Locate the first ``;`` on the current line that is outside a quoted string.

    Returns a cursor positioned on the semicolon, or ``None`` if the rest
    of the line has no bare semicolon.
    """
    inside_string = False
    for offset, char in enumerate(rest_of_line(cursor)):
        if char == '"':
            inside_string = not inside_string
        elif char == ";" and not inside_string:
            return advance(cursor, offset)
    return None
