"""
Document parser for beanparse.

Walks a whole ledger text line by line:

1. Blank lines and full-line comments (``;`` or a ``****`` section rule)
   are skipped.
2. Every registered directive definition is tried in dispatch order; the
   first one that parses wins.
3. A line no definition accepts becomes an ``unknown_directive`` entry
   carrying the raw text and a warning, so one malformed line never aborts
   the document.

Only an unterminated quoted string (or a broken configuration) raises.

Usage:
    from beanparse.core.parser import create_parser
    from beanparse.ledger import default_modules

    parse = create_parser(create_parser_config(default_modules()), "main.beancount")
    entries = parse(text)
"""

from __future__ import annotations

import logging
import re
from typing import Any

from . import ir
from .combinators import (
    DATE,
    consume_newline,
    find_comment_start,
    parse_tags_and_links,
    skip_whitespace,
    split_tags_and_links,
)
from .cursor import (
    Cursor,
    ParseResult,
    advance,
    create_cursor,
    is_at_end,
    line_indent,
    peek_char,
    peek_string,
    skip_blank_lines,
    skip_to_end_of_line,
)
from .errors import ConfigurationError, make_module_validation_error
from .fields import merge_field_parsers, parse_field
from .linker import flatten_directives, validate_module_dependencies
from .metadata import parse_metadata

logger = logging.getLogger(__name__)

SECTION_RULE = "****"
METADATA_INDENT = 2
CONTINUATION_INDENT = 2
_QUOTED = re.compile(r'"([^"]*)"')


class LedgerParser:
    """
    Parser for one configuration and source name.

    Instances hold no per-parse state; calling the same parser on several
    texts, even concurrently, is safe.
    """

    def __init__(self, config: ir.ParserConfig, source_name: str = "stdin"):
        """
        Initialize parser.

        Args:
            config: Modules, field parsers and validators to parse with
            source_name: Name stamped into every entry's ``meta.location``

        Raises:
            ModuleValidationError: If a module depends on a missing module
        """
        errors = validate_module_dependencies(config.modules)
        if errors:
            raise make_module_validation_error(errors)

        self.config = config
        self.source_name = source_name
        self.directives = flatten_directives(config.modules)
        self.field_parsers = merge_field_parsers(config.field_parsers)
        self.custom_validators = dict(config.custom_validators)

        logger.info(
            "Parser for %s: %d modules, %d directives",
            source_name,
            len(config.modules),
            len(self.directives),
        )

    def __call__(self, text: str) -> list[ir.Entry]:
        return self.parse(text)

    @property
    def directive_kinds(self) -> list[str]:
        return [directive.kind for directive in self.directives]

    def parse(self, text: str) -> list[ir.Entry]:
        """
        Parse a whole document into entries, in source order.

        Raises:
            ParseError: On an unterminated quoted string
            ConfigurationError: On a field type or validator that is not registered
        """
        entries: list[ir.Entry] = []
        cursor = create_cursor(text, self.source_name)

        while not is_at_end(cursor):
            cursor = skip_whitespace(cursor)

            if peek_char(cursor) == "\n":
                cursor = advance(cursor, 1)
                continue
            if is_at_end(cursor):
                break
            if self._at_comment(cursor):
                cursor = skip_to_end_of_line(cursor)
                continue

            result = self.parse_directive(cursor)
            if result is None:
                result = self._recover_unknown(cursor)

            entries.append(result.value)
            cursor = result.cursor

        return entries

    def parse_directive(self, cursor: Cursor) -> ParseResult[ir.Entry] | None:
        """Try every definition at the cursor; the first match wins."""
        for definition in self.directives:
            result = self._parse_with(cursor, definition)
            if result is not None:
                return result
        return None

    def _at_comment(self, cursor: Cursor) -> bool:
        return peek_char(cursor) == ";" or peek_string(cursor, len(SECTION_RULE)) == SECTION_RULE

    def _location(self, cursor: Cursor) -> str:
        return f"{self.source_name}:{cursor.line}"

    def _parse_with(
        self, cursor: Cursor, definition: ir.DirectiveDefinition
    ) -> ParseResult[ir.Entry] | None:
        if isinstance(definition, ir.CustomDirective):
            result = definition.parser(cursor, definition.fields)
            if result is None:
                return None
            entry = result.value
            meta = {**entry.meta, "location": self._location(cursor)}
            return ParseResult(entry.model_copy(update={"meta": meta}), result.cursor)
        if isinstance(definition, ir.SchemaDirective):
            return self._parse_schema_directive(cursor, definition)
        raise ConfigurationError(f"Unsupported directive definition: {definition!r}")

    def _parse_schema_directive(
        self, cursor: Cursor, definition: ir.SchemaDirective
    ) -> ParseResult[ir.Entry] | None:
        """
        Parse a directive by iterating its field definitions.

        After the fields: the line is cut at a bare ``;``, trailing tags and
        links are collected, the line terminator is consumed, and an
        indented metadata block is attached when present.
        """
        current = cursor
        values: dict[str, Any] = {}

        for field in definition.fields:
            current = skip_whitespace(current)
            result = parse_field(current, field, self.field_parsers, self.custom_validators)
            if result is not None:
                values[field.name] = result.value
                current = result.cursor
            elif field.required:
                return None
            elif field.has_default:
                values[field.name] = field.default_value

        # The line ends at a bare ';'; tags and links are only read before it
        comment = find_comment_start(current)
        items = parse_tags_and_links(current)
        if items is not None and (comment is None or items.cursor.position <= comment.position):
            values["tags"], values["links"] = split_tags_and_links(items.value)
            current = items.cursor

        current = consume_newline(skip_to_end_of_line(current))

        meta: ir.Meta = {}
        block = parse_metadata(current, METADATA_INDENT)
        if block is not None:
            meta = block.value
            current = skip_blank_lines(block.cursor)
        meta["location"] = self._location(cursor)

        entry = ir.Entry(**{**values, "kind": definition.kind, "meta": meta})
        return ParseResult(entry, current)

    def _recover_unknown(self, cursor: Cursor) -> ParseResult[ir.Entry]:
        """
        Build an ``unknown_directive`` entry for the line at the cursor.

        Indented continuation lines directly below are folded into the
        entry's ``body`` so they are not reported again.
        """
        end = skip_to_end_of_line(cursor)
        while peek_char(end) == "\n":
            following = advance(end, 1)
            width = line_indent(following)
            if width < CONTINUATION_INDENT or peek_char(following, width) in ("\n", ""):
                break
            end = skip_to_end_of_line(following)

        raw = cursor.text[cursor.position : end.position]
        body = "\n".join(line.lstrip(" \t") for line in raw.split("\n")).strip()

        words = body.split()
        date = ""
        kind = ""
        if words:
            if DATE.fullmatch(words[0]):
                date = words[0]
                kind = words[1] if len(words) > 1 else ""
            else:
                kind = words[0]

        quoted = _QUOTED.findall(body)
        value = quoted[1] if len(quoted) >= 2 else None

        warning = f"Unknown directive at line {cursor.line}, column {cursor.column}"
        logger.debug("%s: %s", warning, body)

        entry = ir.UnknownDirective(
            date=date,
            type=kind,
            value=value,
            body=body,
            meta={
                "warning": warning,
                "location": self._location(cursor),
                "type": kind,
                "body": body,
            },
        )
        return ParseResult(entry, consume_newline(end))


def create_parser(config: ir.ParserConfig, source_name: str = "stdin") -> LedgerParser:
    """
    Build a parser for ``config``.

    The returned object is callable: ``create_parser(config)(text)``.

    Raises:
        ModuleValidationError: If module dependency validation fails
    """
    return LedgerParser(config, source_name)


def parse_text(
    text: str,
    modules: list[ir.DirectiveModule],
    source_name: str = "stdin",
) -> list[ir.Entry]:
    """Parse ``text`` with ``modules`` and the builtin field parsers."""
    return create_parser(ir.create_parser_config(modules), source_name).parse(text)
