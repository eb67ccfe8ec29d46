"""
beanparse Intermediate Representation (IR) types.

Entries produced by the parser and the declarative schema types that drive
it. All types are re-exported from this package.
"""

from .entries import (
    Amount,
    Entry,
    Meta,
    MetaValue,
    Posting,
    TagOrLink,
    Transaction,
    UnknownDirective,
)
from .schema import (
    CustomDirective,
    DirectiveDefinition,
    DirectiveModule,
    DirectiveParser,
    FieldDefinition,
    FieldParser,
    ParserConfig,
    SchemaDirective,
    Validator,
    create_parser_config,
)

__all__ = [
    # Entries
    "Amount",
    "Entry",
    "Meta",
    "MetaValue",
    "Posting",
    "TagOrLink",
    "Transaction",
    "UnknownDirective",
    # Schema
    "CustomDirective",
    "DirectiveDefinition",
    "DirectiveModule",
    "DirectiveParser",
    "FieldDefinition",
    "FieldParser",
    "ParserConfig",
    "SchemaDirective",
    "Validator",
    "create_parser_config",
]
