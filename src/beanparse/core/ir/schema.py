"""
Directive schema types for beanparse IR.

Directives are declared as data. Regular directives list their fields and
are parsed by iterating the schema; the irregular ``transaction`` grammar
opts out with a custom parser that owns cursor advancement for the whole
directive:

    SchemaDirective(kind="close", fields=[
        FieldDefinition(name="date", type="date", required=True),
        FieldDefinition(name="keyword", type="string", required=True,
                        parser=keyword("close")),
        FieldDefinition(name="account", type="account", required=True),
    ])

    CustomDirective(kind="transaction", parser=parse_transaction)

Definitions are grouped into named, versioned modules which may depend on
other modules registered in the same configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..cursor import Cursor, ParseResult
from .entries import Entry

FieldParser = Callable[[Cursor], ParseResult[Any] | None]
Validator = Callable[[Any], bool]
DirectiveParser = Callable[[Cursor, list["FieldDefinition"]], ParseResult[Entry] | None]


class FieldDefinition(BaseModel):
    """
    One field of a schema-driven directive.

    Attributes:
        name: Attribute name on the resulting entry
        type: Registered field parser name (string, amount, account, ...)
        required: Whether a failed parse rejects the whole directive
        default_value: Value used when an optional field is absent; only
            applied when explicitly set
        validator: Predicate (or name of a configured custom validator) that
            can reject an otherwise successful parse
        parser: Field-local parser overriding the ``type`` lookup
    """

    name: str
    type: str
    required: bool = False
    default_value: Any = None
    validator: Validator | str | None = None
    parser: FieldParser | None = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def has_default(self) -> bool:
        return "default_value" in self.model_fields_set


class SchemaDirective(BaseModel):
    """Directive parsed by iterating its field definitions."""

    kind: str
    fields: list[FieldDefinition] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class CustomDirective(BaseModel):
    """Directive whose parser consumes the whole entry itself."""

    kind: str
    parser: DirectiveParser
    fields: list[FieldDefinition] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


DirectiveDefinition = SchemaDirective | CustomDirective


class DirectiveModule(BaseModel):
    """
    A named, versioned bundle of directive definitions.

    Attributes:
        name: Module name referenced by other modules' dependencies
        version: Module version string
        directives: Definitions in dispatch order
        dependencies: Names of modules this module requires
    """

    name: str
    version: str = "1.0.0"
    directives: list[DirectiveDefinition] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ParserConfig(BaseModel):
    """
    Everything needed to construct a parser.

    Attributes:
        modules: Directive modules, in registration order
        field_parsers: Field parsers merged over the builtins (caller wins)
        custom_validators: Named predicates referenced by field validators
    """

    modules: list[DirectiveModule] = Field(default_factory=list)
    field_parsers: dict[str, FieldParser] = Field(default_factory=dict)
    custom_validators: dict[str, Validator] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


def create_parser_config(
    modules: list[DirectiveModule],
    field_parsers: dict[str, FieldParser] | None = None,
    custom_validators: dict[str, Validator] | None = None,
) -> ParserConfig:
    """Bundle modules and caller-supplied parsers/validators into a config."""
    return ParserConfig(
        modules=modules,
        field_parsers=field_parsers or {},
        custom_validators=custom_validators or {},
    )
