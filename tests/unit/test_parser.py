"""Tests for the document parser."""

import pytest

from beanparse.core import ir
from beanparse.core.combinators import keyword
from beanparse.core.cursor import ParseResult, advance
from beanparse.core.errors import ConfigurationError, ModuleValidationError, ParseError
from beanparse.core.parser import LedgerParser, create_parser, parse_text
from beanparse.ledger import core_beancount_module, default_modules, transaction_module


def event_module(name: str, kind: str) -> ir.DirectiveModule:
    """Module whose single directive matches any ``<date> <word>`` line."""
    return ir.DirectiveModule(
        name=name,
        directives=[
            ir.SchemaDirective(
                kind=kind,
                fields=[
                    ir.FieldDefinition(name="date", type="date", required=True),
                    ir.FieldDefinition(name="name", type="string", required=True),
                ],
            )
        ],
    )


class TestScenarios:
    """End-to-end behavior of the builtin modules on single directives."""

    def test_open_with_currencies(self, parser: LedgerParser) -> None:
        entries = parser.parse("2024-01-01 open Assets:Cash USD,BRL")
        assert len(entries) == 1
        entry = entries[0]
        assert entry.kind == "open"
        assert entry.date == "2024-01-01"
        assert entry.account == "Assets:Cash"
        assert entry.currencies == ["USD", "BRL"]

    def test_transaction_with_payee(self, parser: LedgerParser) -> None:
        text = (
            '2024-01-01 * "Store" "Purchase"\n'
            "  Assets:Cash      -100.00 USD\n"
            "  Expenses:Food     100.00 USD\n"
        )
        entries = parser.parse(text)
        assert len(entries) == 1
        tx = entries[0]
        assert isinstance(tx, ir.Transaction)
        assert tx.kind == "transaction"
        assert tx.payee == "Store"
        assert tx.narration == "Purchase"
        assert [p.amount for p in tx.postings] == [
            ir.Amount(value=-100.0, currency="USD"),
            ir.Amount(value=100.0, currency="USD"),
        ]

    def test_double_semicolon_comment_after_open(self, parser: LedgerParser) -> None:
        entries = parser.parse('2015-03-01 open Assets:XXX:YYY ;; "SOME_STRING"')
        assert len(entries) == 1
        entry = entries[0]
        assert entry.kind == "open"
        assert entry.account == "Assets:XXX:YYY"
        assert entry.get("postings") is None
        assert "warning" not in entry.meta

    def test_unterminated_string_aborts(self, parser: LedgerParser) -> None:
        with pytest.raises(ParseError, match="Unterminated string"):
            parser.parse('2024-01-01 * "Unterminated string')

    def test_unknown_directive(self, parser: LedgerParser) -> None:
        entries = parser.parse("2024-01-01 unknown_directive foo bar")
        assert len(entries) == 1
        entry = entries[0]
        assert entry.kind == "unknown_directive"
        assert "Unknown directive" in entry.meta["warning"]


class TestDocument:
    """Tests for whole-document parsing."""

    def test_sample_ledger(self, parser: LedgerParser, sample_ledger: str) -> None:
        entries = parser.parse(sample_ledger)

        assert [e.kind for e in entries] == [
            "open",
            "open",
            "transaction",
            "balance",
            "price",
            "note",
            "budget",
            "close",
        ]
        assert [e.location for e in entries] == [
            "stdin:4",
            "stdin:6",
            "stdin:7",
            "stdin:11",
            "stdin:12",
            "stdin:13",
            "stdin:14",
            "stdin:15",
        ]

        cash = entries[0]
        assert cash.tags == ["primary"]
        assert cash.links == []
        assert cash.meta["description"] == "Main account"

        assert entries[1].get("currencies") is None

        tx = entries[2]
        assert tx.tags == ["food"]
        assert tx.links == ["receipt-1"]
        assert tx.postings[1].amount is None

        assert entries[3].amount == ir.Amount(value=-100.0, currency="USD")
        assert entries[4].commodity == "EUR"
        assert entries[5].comment == "Checked statement"
        assert entries[6].period == "monthly"

    def test_empty_input(self, parser: LedgerParser) -> None:
        assert parser.parse("") == []
        assert parser.parse("   \n\n\t\n") == []

    def test_comments_only(self, parser: LedgerParser) -> None:
        assert parser.parse("; comment\n;; another\n**** Section\n  ; indented\n") == []

    def test_every_line_is_covered(self, parser: LedgerParser) -> None:
        text = (
            "2024-01-01 open Assets:Cash\n"
            "this is not a directive\n"
            "2024-01-02 frobnicate Assets:Cash\n"
            "  continuation: line\n"
            "2024-01-03 close Assets:Cash\n"
        )
        entries = parser.parse(text)

        assert [e.kind for e in entries] == ["open", "unknown_directive", "unknown_directive", "close"]
        assert entries[1].type == "this"
        assert entries[1].date == ""
        assert entries[2].date == "2024-01-02"
        assert entries[2].type == "frobnicate"
        assert entries[2].body == "2024-01-02 frobnicate Assets:Cash\ncontinuation: line"
        assert entries[3].location == "stdin:5"

    def test_unknown_directive_fields(self, parser: LedgerParser) -> None:
        entries = parser.parse('2024-01-01 custom "budget" "Food" 100\n')
        entry = entries[0]
        assert isinstance(entry, ir.UnknownDirective)
        assert entry.type == "custom"
        assert entry.value == "Food"
        assert entry.warning == "Unknown directive at line 1, column 1"
        assert entry.meta["type"] == "custom"
        assert entry.meta["body"] == entry.body
        assert entry.meta["location"] == "stdin:1"

    def test_keyword_needs_word_boundary(self, parser: LedgerParser) -> None:
        entries = parser.parse("2024-01-01 opening Assets:Cash")
        assert entries[0].kind == "unknown_directive"

    def test_malformed_body_line_is_reported_separately(self, parser: LedgerParser) -> None:
        text = '2024-01-01 * "X"\n  Assets:Cash -1 USD\n  ??? garbage\n'
        entries = parser.parse(text)
        assert [e.kind for e in entries] == ["transaction", "unknown_directive"]
        assert len(entries[0].postings) == 1
        assert entries[1].location == "stdin:3"


class TestSchemaDirectives:
    """Tests for schema-driven directive parsing."""

    def test_tags_and_links_after_fields(self, parser: LedgerParser) -> None:
        entry = parser.parse("2024-01-01 close Assets:Cash #closed ^ref-9")[0]
        assert entry.tags == ["closed"]
        assert entry.links == ["ref-9"]

    def test_tags_after_comment_are_ignored(self, parser: LedgerParser) -> None:
        entry = parser.parse("2024-01-01 close Assets:Cash ; note #x")[0]
        assert entry.kind == "close"
        assert entry.get("tags") is None

    def test_metadata_block(self, parser: LedgerParser) -> None:
        text = "2024-01-01 open Assets:Cash\n  priority: 1\n\n  owner: me\n2024-01-02 close Assets:Cash\n"
        entries = parser.parse(text)
        assert entries[0].meta == {"priority": 1, "owner": "me", "location": "stdin:1"}
        assert entries[1].location == "stdin:5"

    def test_source_name_in_location(self, default_config: ir.ParserConfig) -> None:
        parse = create_parser(default_config, "main.beancount")
        assert parse("\n2024-01-01 close Assets:Cash")[0].location == "main.beancount:2"

    def test_optional_field_without_default_is_absent(self) -> None:
        module = ir.DirectiveModule(
            name="notes",
            directives=[
                ir.SchemaDirective(
                    kind="memo",
                    fields=[
                        ir.FieldDefinition(name="date", type="date", required=True),
                        ir.FieldDefinition(
                            name="keyword", type="string", required=True, parser=keyword("memo")
                        ),
                        ir.FieldDefinition(name="count", type="number"),
                        ir.FieldDefinition(name="text", type="string"),
                    ],
                )
            ],
        )
        entry = parse_text("2024-01-01 memo hello", [module])[0]
        assert entry.kind == "memo"
        assert entry.get("count") is None
        assert entry.text == "hello"

    def test_unknown_field_type_raises_on_parse(self) -> None:
        module = ir.DirectiveModule(
            name="broken",
            directives=[
                ir.SchemaDirective(
                    kind="broken",
                    fields=[ir.FieldDefinition(name="v", type="money", required=True)],
                )
            ],
        )
        parser = create_parser(ir.create_parser_config([module]))
        with pytest.raises(ConfigurationError, match="money"):
            parser.parse("anything")


class TestDispatch:
    """Tests for first-match-wins dispatch."""

    def test_earlier_module_wins(self) -> None:
        first, second = event_module("a", "alpha"), event_module("b", "beta")
        assert parse_text("2024-01-01 hello", [first, second])[0].kind == "alpha"
        assert parse_text("2024-01-01 hello", [second, first])[0].kind == "beta"

    def test_earlier_directive_in_module_wins(self) -> None:
        fields = event_module("x", "x").directives[0].fields
        module = ir.DirectiveModule(
            name="both",
            directives=[
                ir.SchemaDirective(kind="first", fields=fields),
                ir.SchemaDirective(kind="second", fields=fields),
            ],
        )
        assert parse_text("2024-01-01 hello", [module])[0].kind == "first"

    def test_custom_directive(self) -> None:
        def parse_everything(cursor, fields):
            end = len(cursor.text) - cursor.position
            return ParseResult(ir.Entry(kind="blob", meta={"raw": cursor.text}), advance(cursor, end))

        module = ir.DirectiveModule(
            name="blob", directives=[ir.CustomDirective(kind="blob", parser=parse_everything)]
        )
        entries = parse_text("a\nb\n", [module], "blob.txt")
        assert len(entries) == 1
        assert entries[0].meta == {"raw": "a\nb\n", "location": "blob.txt:1"}

    def test_directive_kinds(self, parser: LedgerParser) -> None:
        assert parser.directive_kinds == [
            "open",
            "close",
            "balance",
            "price",
            "note",
            "transaction",
            "budget",
        ]


class TestConstruction:
    """Tests for parser construction."""

    def test_missing_dependency_fails_construction(self) -> None:
        config = ir.create_parser_config([transaction_module()])
        with pytest.raises(ModuleValidationError) as exc_info:
            create_parser(config)
        assert str(exc_info.value) == (
            "Module validation failed: "
            "Module 'transactions' depends on missing module 'core-beancount'"
        )
        assert exc_info.value.errors == [
            "Module 'transactions' depends on missing module 'core-beancount'"
        ]

    def test_parser_is_reusable(self) -> None:
        parse = create_parser(ir.create_parser_config([core_beancount_module()]))
        first = parse("2024-01-01 close Assets:A")
        second = parse("2024-01-01 close Assets:B")
        assert first[0].account == "Assets:A"
        assert second[0].account == "Assets:B"

    def test_parse_text_helper(self) -> None:
        entries = parse_text("2024-01-01 close Assets:Cash", default_modules(), "x.beancount")
        assert entries[0].location == "x.beancount:1"
