"""Core beanparse functionality: IR, cursor, combinators, parser, balancing, configuration."""

from . import ir
from .balancing import BalanceError, BalanceResult, balance_transaction, balance_transactions
from .cursor import Cursor, ParseResult, create_cursor
from .errors import (
    BeanparseError,
    ConfigurationError,
    ErrorContext,
    ModuleValidationError,
    ParseError,
    WorkerError,
)
from .linker import (
    all_directive_kinds,
    flatten_directives,
    get_module_by_name,
    validate_module_dependencies,
)
from .manifest import ProjectManifest, find_manifest, load_manifest
from .parser import LedgerParser, create_parser, parse_text

__all__ = [
    "ir",
    "Cursor",
    "ParseResult",
    "create_cursor",
    "BeanparseError",
    "ParseError",
    "ConfigurationError",
    "ModuleValidationError",
    "WorkerError",
    "ErrorContext",
    "validate_module_dependencies",
    "flatten_directives",
    "all_directive_kinds",
    "get_module_by_name",
    "LedgerParser",
    "create_parser",
    "parse_text",
    "BalanceError",
    "BalanceResult",
    "balance_transaction",
    "balance_transactions",
    "ProjectManifest",
    "load_manifest",
    "find_manifest",
]
