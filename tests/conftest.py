"""Shared pytest fixtures for beanparse tests."""

from pathlib import Path

import pytest

from beanparse.core import ir
from beanparse.core.parser import LedgerParser, create_parser
from beanparse.ledger import default_modules

SAMPLE_LEDGER = """\
; Main ledger
**** Accounts

2024-01-01 open Assets:Cash USD,BRL #primary
  description: "Main account"
2024-01-01 open Expenses:Food
2024-01-02 * "Store" "Purchase" #food ^receipt-1
  Assets:Cash      -100.00 USD
  Expenses:Food

2024-01-03 balance Assets:Cash -100.00 USD
2024-01-04 price EUR 1.10 USD
2024-01-05 note Assets:Cash "Checked statement"
2024-02-01 budget Expenses:Food 300.00 USD
2024-03-01 close Assets:Cash
"""


@pytest.fixture
def default_config() -> ir.ParserConfig:
    """Return a parser configuration with every builtin module."""
    return ir.create_parser_config(default_modules())


@pytest.fixture
def parser(default_config: ir.ParserConfig) -> LedgerParser:
    """Return a parser over the builtin modules, reading from stdin."""
    return create_parser(default_config)


@pytest.fixture
def sample_ledger() -> str:
    """Return a small ledger exercising every builtin directive."""
    return SAMPLE_LEDGER


@pytest.fixture
def ledger_file(tmp_path: Path) -> Path:
    """Write the sample ledger to a temporary file."""
    path = tmp_path / "main.beancount"
    path.write_text(SAMPLE_LEDGER)
    return path
