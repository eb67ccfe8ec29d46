"""
beanparse - schema-driven parser for Beancount-style plain-text ledgers.

Directives are declared as data, grouped into modules, and dispatched
first-match-wins; unparseable lines degrade to ``unknown_directive``
entries instead of aborting the document.
"""

from __future__ import annotations

import re
from importlib.metadata import version as _metadata_version
from pathlib import Path as _Path

# Re-export commonly used types for convenience
from .core import ir
from .core.balancing import BalanceError, BalanceResult, balance_transactions
from .core.errors import (
    BeanparseError,
    ConfigurationError,
    ModuleValidationError,
    ParseError,
    WorkerError,
)
from .core.parser import LedgerParser, create_parser, parse_text
from .ledger import default_modules


def _get_version() -> str:
    """Get version from pyproject.toml (editable) or importlib.metadata (installed)."""
    # In editable mode, read directly from pyproject.toml for live updates
    pyproject = _Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        content = pyproject.read_text()
        if match := re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE):
            return match.group(1)

    # Fall back to installed metadata
    try:
        return _metadata_version("beanparse")
    except Exception:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "__version__",
    "ir",
    "BeanparseError",
    "ParseError",
    "ConfigurationError",
    "ModuleValidationError",
    "WorkerError",
    "BalanceError",
    "BalanceResult",
    "balance_transactions",
    "LedgerParser",
    "create_parser",
    "parse_text",
    "default_modules",
]
