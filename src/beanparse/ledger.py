"""
Builtin Beancount-style directive modules.

- ``core-beancount``: open, close, balance, price, note
- ``transactions``: transaction (custom parser), depends on core-beancount
- ``custom-reporting``: budget

Each factory returns a fresh module so callers can combine them freely:

    config = create_parser_config(
        [core_beancount_module(), transaction_module(), custom_reporting_module()]
    )
"""

from __future__ import annotations

from collections.abc import Callable

from .core.combinators import keyword, parse_currency, parse_quoted_string, skip_whitespace
from .core.cursor import Cursor, ParseResult, advance, peek_char
from .core.errors import ConfigurationError
from .core.ir import CustomDirective, DirectiveModule, FieldDefinition, SchemaDirective
from .core.linker import all_directive_kinds, get_module_by_name
from .core.transaction import parse_transaction

__all__ = [
    "BUILTIN_MODULES",
    "all_directive_kinds",
    "builtin_modules",
    "core_beancount_module",
    "custom_reporting_module",
    "default_modules",
    "get_module_by_name",
    "parse_currency_list",
    "transaction_module",
]


def parse_currency_list(cursor: Cursor) -> ParseResult[list[str]] | None:
    """Comma-separated currency codes, e.g. ``USD,BRL`` or ``USD, EUR``."""
    first = parse_currency(cursor)
    if first is None:
        return None

    currencies = [first.value]
    current = first.cursor
    while peek_char(current) == ",":
        following = skip_whitespace(advance(current, 1))
        result = parse_currency(following)
        if result is None:
            break
        currencies.append(result.value)
        current = result.cursor

    return ParseResult(currencies, current)


def _header(word: str) -> list[FieldDefinition]:
    return [
        FieldDefinition(name="date", type="date", required=True),
        FieldDefinition(name="keyword", type="string", required=True, parser=keyword(word)),
    ]


def core_beancount_module() -> DirectiveModule:
    return DirectiveModule(
        name="core-beancount",
        version="1.0.0",
        directives=[
            SchemaDirective(
                kind="open",
                fields=[
                    *_header("open"),
                    FieldDefinition(name="account", type="account", required=True),
                    FieldDefinition(
                        name="currencies", type="array", parser=parse_currency_list
                    ),
                ],
            ),
            SchemaDirective(
                kind="close",
                fields=[
                    *_header("close"),
                    FieldDefinition(name="account", type="account", required=True),
                ],
            ),
            SchemaDirective(
                kind="balance",
                fields=[
                    *_header("balance"),
                    FieldDefinition(name="account", type="account", required=True),
                    FieldDefinition(name="amount", type="amount", required=True),
                ],
            ),
            SchemaDirective(
                kind="price",
                fields=[
                    *_header("price"),
                    FieldDefinition(name="commodity", type="string", required=True),
                    FieldDefinition(name="amount", type="amount", required=True),
                ],
            ),
            SchemaDirective(
                kind="note",
                fields=[
                    *_header("note"),
                    FieldDefinition(name="account", type="account", required=True),
                    FieldDefinition(
                        name="comment",
                        type="string",
                        required=True,
                        parser=parse_quoted_string,
                    ),
                ],
            ),
        ],
    )


def transaction_module() -> DirectiveModule:
    return DirectiveModule(
        name="transactions",
        version="1.0.0",
        dependencies=["core-beancount"],
        directives=[CustomDirective(kind="transaction", parser=parse_transaction)],
    )


def custom_reporting_module() -> DirectiveModule:
    return DirectiveModule(
        name="custom-reporting",
        version="1.0.0",
        directives=[
            SchemaDirective(
                kind="budget",
                fields=[
                    *_header("budget"),
                    FieldDefinition(name="account", type="account", required=True),
                    FieldDefinition(name="amount", type="amount", required=True),
                    FieldDefinition(
                        name="period",
                        type="string",
                        default_value="monthly",
                        validator=lambda value: not value.startswith(("#", "^", ";")),
                    ),
                ],
            ),
        ],
    )


BUILTIN_MODULES: dict[str, Callable[[], DirectiveModule]] = {
    "core-beancount": core_beancount_module,
    "transactions": transaction_module,
    "custom-reporting": custom_reporting_module,
}


def default_modules() -> list[DirectiveModule]:
    """All builtin modules in their canonical dispatch order."""
    return [factory() for factory in BUILTIN_MODULES.values()]


def builtin_modules(names: list[str]) -> list[DirectiveModule]:
    """
    Instantiate builtin modules by name, keeping the given order.

    Raises:
        ConfigurationError: If a name is not a builtin module
    """
    unknown = [name for name in names if name not in BUILTIN_MODULES]
    if unknown:
        raise ConfigurationError(
            f"Unknown builtin module(s): {', '.join(unknown)}. "
            f"Available modules: {list(BUILTIN_MODULES)}"
        )
    return [BUILTIN_MODULES[name]() for name in names]
