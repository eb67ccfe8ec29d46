"""
Transaction directive parser.

Transactions do not fit the field schema, so this parser owns cursor
advancement for the whole directive:

    2024-11-19 * "Investment Broker" "Sale of government bond" #todo ^trade-42
      doc-nr: "20241119000001234"
      Assets:Investment:Bonds   -0.07 GOVT_BOND_2029 {15000.00 USD}
        lot: 3
      ; comments are skipped
      Assets:Bank:Checking    1000.00 USD
      Income:Investment:CapitalGains

Header rules:
- date and flag (``*`` or ``!``) are mandatory; without them the line is
  left for other directives
- one quoted string is the narration; two are payee then narration
- tags and links follow in any order

Once the narration is read the parser commits: malformed body lines end
the body early instead of rejecting the transaction.
"""

from __future__ import annotations

import logging
import re

from . import ir
from .combinators import (
    FLAG,
    consume_newline,
    find_comment_start,
    parse_account,
    parse_amount,
    parse_date,
    parse_quoted_string,
    parse_regex,
    parse_tags_and_links,
    skip_whitespace,
    split_tags_and_links,
)
from .cursor import (
    Cursor,
    ParseResult,
    advance,
    is_at_end,
    line_indent,
    next_line_indent,
    peek_char,
    rest_of_line,
    skip_blank_lines,
    skip_line,
    skip_to_end_of_line,
)
from .metadata import parse_meta_pair, parse_metadata

logger = logging.getLogger(__name__)

BODY_INDENT = 2
POSTING_META_INDENT = 4
_TAG_OR_LINK = re.compile(r"[#^][a-zA-Z0-9_-]")


def parse_transaction(
    cursor: Cursor, fields: list[ir.FieldDefinition] | None = None
) -> ParseResult[ir.Entry] | None:
    """
    Parse a transaction starting at the cursor.

    ``fields`` is accepted for the custom-directive signature and unused.

    Returns:
        The transaction and the cursor at the next directive, or ``None``
        if the header does not start with date, flag and narration

    Raises:
        ParseError: On an unterminated payee or narration string
    """
    date = parse_date(cursor)
    if date is None:
        return None
    current = skip_whitespace(date.cursor)

    flag = parse_regex(current, FLAG)
    if flag is None:
        return None
    current = skip_whitespace(flag.cursor)

    first = parse_quoted_string(current)
    if first is None:
        return None
    current = skip_whitespace(first.cursor)

    payee: str | None = None
    narration = first.value
    second = parse_quoted_string(current)
    if second is not None:
        payee, narration = first.value, second.value
        current = skip_whitespace(second.cursor)

    tags: list[str] = []
    links: list[str] = []
    items = parse_tags_and_links(current)
    if items is not None:
        tags, links = split_tags_and_links(items.value)
        current = skip_whitespace(items.cursor)

    def build(postings: list[ir.Posting], meta: ir.Meta) -> ir.Transaction:
        return ir.Transaction(
            date=date.value,
            flag=flag.value.group(0),
            payee=payee,
            narration=narration,
            postings=postings,
            meta=meta,
            tags=tags,
            links=links,
        )

    if _ends_with_bare_comment(current):
        end = consume_newline(skip_to_end_of_line(current))
        logger.debug("Transaction at line %d closed by trailing comment", cursor.line)
        return ParseResult(build([], {}), end)

    current = consume_newline(skip_to_end_of_line(current))
    postings, meta, current = _parse_body(current)
    return ParseResult(build(postings, meta), _resync(current))


def _ends_with_bare_comment(cursor: Cursor) -> bool:
    """
    True when the header ends in a trailing comment and no body follows.

    The comment must be empty or itself start with ``;`` (the ``;;``
    annotation marker) and hold no tag/link tokens. An indented line
    directly below means the transaction has a body and the comment is
    ignored.
    """
    comment = find_comment_start(cursor)
    if comment is None:
        return False
    text = rest_of_line(comment)[1:].strip()
    if text and not text.startswith(";"):
        return False
    if _TAG_OR_LINK.search(text):
        return False
    indent = next_line_indent(cursor)
    return indent is None or indent < BODY_INDENT


def _parse_body(cursor: Cursor) -> tuple[list[ir.Posting], ir.Meta, Cursor]:
    """Read indented comment, metadata and posting lines."""
    postings: list[ir.Posting] = []
    meta: ir.Meta = {}
    current = cursor

    while not is_at_end(current):
        probe = skip_blank_lines(current)
        width = line_indent(probe)
        if width < BODY_INDENT:
            break
        line = advance(probe, width)

        if peek_char(line) == ";":
            current = skip_line(line)
            continue

        pair = parse_meta_pair(line)
        if pair is not None:
            key, value = pair.value
            meta[key] = value
            current = consume_newline(pair.cursor)
            continue

        account = parse_account(line)
        if account is None:
            break

        after = skip_whitespace(account.cursor)
        amount = parse_amount(after)
        # Cost, price and comments on the posting line are not interpreted
        current = skip_line(amount.cursor if amount else after)

        posting_meta: ir.Meta = {}
        block = parse_metadata(current, POSTING_META_INDENT)
        if block is not None:
            posting_meta = block.value
            current = block.cursor

        postings.append(
            ir.Posting(
                account=account.value,
                amount=amount.value if amount else None,
                meta=posting_meta,
            )
        )

    return postings, meta, current


def _resync(cursor: Cursor) -> Cursor:
    """Skip blank and comment lines up to the next directive or end of text."""
    current = cursor
    while not is_at_end(current):
        width = line_indent(current)
        char = peek_char(current, width)
        if char not in ("\n", ";"):
            break
        current = skip_line(current)
    return current
