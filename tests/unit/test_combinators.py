"""Tests for primitive ledger combinators."""

import pytest

from beanparse.core.combinators import (
    consume_newline,
    find_comment_start,
    keyword,
    parse_account,
    parse_amount,
    parse_array,
    parse_boolean,
    parse_date,
    parse_email,
    parse_literal,
    parse_number,
    parse_quoted_string,
    parse_string_field,
    parse_tag_or_link,
    parse_tags_and_links,
    skip_whitespace,
    split_tags_and_links,
)
from beanparse.core.cursor import advance, create_cursor, remaining
from beanparse.core.errors import ParseError
from beanparse.core.ir import Amount, TagOrLink


def at(text: str):
    return create_cursor(text)


class TestScalars:
    """Tests for date, number, account and boolean parsers."""

    def test_date(self) -> None:
        result = parse_date(at("2024-01-15 open"))
        assert result is not None
        assert result.value == "2024-01-15"
        assert result.cursor.position == 10

    def test_date_requires_four_digit_year(self) -> None:
        assert parse_date(at("24-01-01")) is None

    def test_negative_decimal_number(self) -> None:
        result = parse_number(at("-12.50 USD"))
        assert result is not None
        assert result.value == -12.5

    def test_number_rejects_text(self) -> None:
        assert parse_number(at("abc")) is None

    def test_account(self) -> None:
        result = parse_account(at("Assets:Cash:Checking 100 USD"))
        assert result is not None
        assert result.value == "Assets:Cash:Checking"

    def test_account_must_start_uppercase(self) -> None:
        assert parse_account(at("assets:cash")) is None

    @pytest.mark.parametrize(
        "text,expected",
        [("true", True), ("NO", False), ("yes", True), ("1", True), ("0", False)],
    )
    def test_boolean(self, text: str, expected: bool) -> None:
        result = parse_boolean(at(text))
        assert result is not None
        assert result.value is expected

    def test_boolean_needs_word_boundary(self) -> None:
        assert parse_boolean(at("truest")) is None

    def test_email(self) -> None:
        result = parse_email(at("user@example.com rest"))
        assert result is not None
        assert result.value == "user@example.com"


class TestAmount:
    """Tests for number + currency amounts."""

    def test_amount_with_space(self) -> None:
        result = parse_amount(at("100.00 USD"))
        assert result is not None
        assert result.value == Amount(value=100.0, currency="USD")

    def test_amount_without_space(self) -> None:
        result = parse_amount(at("1000EUR"))
        assert result is not None
        assert result.value == Amount(value=1000.0, currency="EUR")

    def test_amount_commodity_with_digits(self) -> None:
        result = parse_amount(at("-0.07 GOVT_BOND_2029 {15000.00 USD}"))
        assert result is not None
        assert result.value == Amount(value=-0.07, currency="GOVT_BOND_2029")
        assert remaining(result.cursor) == " {15000.00 USD}"

    def test_amount_requires_currency(self) -> None:
        assert parse_amount(at("100")) is None
        assert parse_amount(at("100 usd")) is None

    def test_amount_str(self) -> None:
        assert str(Amount(value=-100.0, currency="USD")) == "-100 USD"


class TestQuotedString:
    """Tests for quoted strings and their escapes."""

    def test_escaped_quotes(self) -> None:
        result = parse_quoted_string(at('"a \\"b\\" c" rest'))
        assert result is not None
        assert result.value == 'a "b" c'
        assert remaining(result.cursor) == " rest"

    def test_newline_and_tab_escapes(self) -> None:
        result = parse_quoted_string(at('"a\\nb\\tc"'))
        assert result is not None
        assert result.value == "a\nb\tc"

    def test_semicolon_inside_string(self) -> None:
        result = parse_quoted_string(at('"a;b"'))
        assert result is not None
        assert result.value == "a;b"

    def test_not_a_string(self) -> None:
        assert parse_quoted_string(at("abc")) is None

    def test_unterminated_string_is_fatal(self) -> None:
        with pytest.raises(ParseError, match="Unterminated string at line 2") as exc_info:
            parse_quoted_string(advance(create_cursor('x\n"abc', "main.beancount"), 2))
        assert exc_info.value.context is not None
        assert exc_info.value.context.source == "main.beancount"
        assert exc_info.value.context.line == 2

    def test_string_field_falls_back_to_word(self) -> None:
        result = parse_string_field(at("hello world"))
        assert result is not None
        assert result.value == "hello"


class TestArray:
    """Tests for comma/whitespace separated lists."""

    def test_mixed_separators_stop_at_tag(self) -> None:
        result = parse_array(at("USD, EUR GBP #tag"))
        assert result is not None
        assert result.value == ["USD", "EUR", "GBP"]
        assert remaining(result.cursor) == "#tag"

    def test_stops_at_comment(self) -> None:
        result = parse_array(at("a;b"))
        assert result is not None
        assert result.value == ["a"]

    def test_quoted_items(self) -> None:
        result = parse_array(at('"New York", Boston'))
        assert result is not None
        assert result.value == ["New York", "Boston"]

    def test_empty_is_no_match(self) -> None:
        assert parse_array(at("")) is None
        assert parse_array(at("#tag")) is None


class TestTagsAndLinks:
    """Tests for #tag and ^link tokens."""

    def test_tag(self) -> None:
        result = parse_tag_or_link(at("#trip-2024"))
        assert result is not None
        assert result.value == TagOrLink(type="tag", value="trip-2024")

    def test_link(self) -> None:
        result = parse_tag_or_link(at("^inv-1"))
        assert result is not None
        assert result.value == TagOrLink(type="link", value="inv-1")

    def test_sequence_keeps_source_order(self) -> None:
        result = parse_tags_and_links(at("#a ^b #c rest"))
        assert result is not None
        assert [item.value for item in result.value] == ["a", "b", "c"]
        assert result.cursor.position == 8
        assert split_tags_and_links(result.value) == (["a", "c"], ["b"])

    def test_no_tags(self) -> None:
        assert parse_tags_and_links(at("rest")) is None


class TestHelpers:
    """Tests for literals, keywords, whitespace and comments."""

    def test_literal(self) -> None:
        result = parse_literal(at("open x"), "open")
        assert result is not None
        assert result.cursor.position == 4
        assert parse_literal(at("close"), "open") is None

    def test_keyword_respects_word_boundary(self) -> None:
        parse_open = keyword("open")
        assert parse_open(at("open Assets:Cash")) is not None
        assert parse_open(at("open")) is not None
        assert parse_open(at("opening Assets:Cash")) is None

    def test_skip_whitespace_stops_at_newline(self) -> None:
        assert skip_whitespace(at(" \t\n x")).position == 2

    def test_consume_newline(self) -> None:
        assert consume_newline(at("\nx")).position == 1
        assert consume_newline(at("x")).position == 0

    def test_find_comment_start_ignores_quoted_semicolons(self) -> None:
        comment = find_comment_start(at('"a;b" ; c'))
        assert comment is not None
        assert comment.position == 6

    def test_find_comment_start_without_comment(self) -> None:
        assert find_comment_start(at('"a;b"\n; next line')) is None
