"""
Field parser registry and schema field dispatch.

Field definitions select a parser by ``type`` name from the registry
unless they carry their own ``parser``. Caller-supplied parsers are merged
over the builtins by name, the caller winning on collision.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .combinators import (
    parse_account,
    parse_amount,
    parse_array,
    parse_boolean,
    parse_date,
    parse_email,
    parse_number,
    parse_string_field,
    parse_tag_or_link,
    parse_tags_and_links,
)
from .cursor import Cursor, ParseResult
from .errors import ConfigurationError
from .ir import FieldDefinition, FieldParser, Validator
from .metadata import parse_metadata


def _parse_object(cursor: Cursor) -> ParseResult[Any] | None:
    return parse_metadata(cursor, 0)


def builtin_field_parsers() -> dict[str, FieldParser]:
    """Return a fresh mapping of the builtin field parsers."""
    return {
        "string": parse_string_field,
        "number": parse_number,
        "boolean": parse_boolean,
        "date": parse_date,
        "amount": parse_amount,
        "account": parse_account,
        "array": parse_array,
        "email": parse_email,
        "object": _parse_object,
        "tag": parse_tag_or_link,
        "tags": parse_tags_and_links,
        "tags_and_links": parse_tags_and_links,
    }


def merge_field_parsers(custom: Mapping[str, FieldParser] | None = None) -> dict[str, FieldParser]:
    """Builtins overlaid with ``custom`` parsers."""
    return {**builtin_field_parsers(), **(custom or {})}


def resolve_validator(
    field: FieldDefinition,
    custom_validators: Mapping[str, Validator] | None = None,
) -> Validator | None:
    """
    Return the predicate for ``field``, resolving validator names.

    Raises:
        ConfigurationError: If the field names an unregistered validator
    """
    if field.validator is None or callable(field.validator):
        return field.validator
    validators = custom_validators or {}
    if field.validator not in validators:
        raise ConfigurationError(
            f"No validator registered for field '{field.name}': {field.validator}"
        )
    return validators[field.validator]


def parse_field(
    cursor: Cursor,
    field: FieldDefinition,
    field_parsers: Mapping[str, FieldParser],
    custom_validators: Mapping[str, Validator] | None = None,
) -> ParseResult[Any] | None:
    """
    Parse one schema field at the cursor.

    A parse rejected by the field's validator is reported as no match.

    Raises:
        ConfigurationError: If the field type has no registered parser
    """
    parser = field.parser
    if parser is None:
        parser = field_parsers.get(field.type)
        if parser is None:
            raise ConfigurationError(f"No parser registered for field type: {field.type}")

    result = parser(cursor)
    if result is None:
        return None

    validator = resolve_validator(field, custom_validators)
    if validator is not None and not validator(result.value):
        return None
    return result
