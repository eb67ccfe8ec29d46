"""
Double-entry balancing pass.

For each transaction with exactly one posting missing its amount, infer the
amount that makes the postings sum to zero. Entries are never modified in
place: a balanced transaction is replaced by a copy. Situations that cannot
be resolved are reported, never raised.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from . import ir

MULTIPLE_CURRENCIES = "cannot infer: multiple currencies present"
NO_REFERENCE_AMOUNT = "cannot infer: no other posting carries an amount"
MULTIPLE_MISSING = "more than one posting without amount"


@dataclass
class BalanceError:
    """
    A transaction the pass could not balance.

    Attributes:
        source: Metadata of the offending entry (includes ``location``)
        message: What prevented the inference
        entry: The entry, left unchanged
    """

    source: ir.Meta
    message: str
    entry: ir.Entry

    def __str__(self) -> str:
        location = self.source.get("location") or "<unknown>"
        return f"{location}: {self.message}"


@dataclass
class BalanceResult:
    """Entries after the pass, plus everything that could not be balanced."""

    entries: list[ir.Entry] = field(default_factory=list)
    errors: list[BalanceError] = field(default_factory=list)


def sum_amounts_by_currency(postings: list[ir.Posting]) -> dict[str, float]:
    """Total of the posting amounts per currency, in first-seen order."""
    totals: dict[str, float] = defaultdict(float)
    for posting in postings:
        if posting.amount is not None:
            totals[posting.amount.currency] += posting.amount.value
    return dict(totals)


def balance_transaction(entry: ir.Transaction) -> tuple[ir.Transaction, str | None]:
    """
    Balance one transaction.

    Returns:
        The (possibly new) transaction and an error message, or ``None``
        when no error occurred
    """
    missing = entry.postings_without_amount()
    if not missing:
        return entry, None
    if len(missing) > 1:
        return entry, MULTIPLE_MISSING

    totals = sum_amounts_by_currency(entry.postings)
    if len(totals) > 1:
        return entry, MULTIPLE_CURRENCIES
    if not totals:
        return entry, NO_REFERENCE_AMOUNT

    (currency, total), = totals.items()
    inferred = ir.Amount(value=-total, currency=currency)
    postings = [
        posting.model_copy(update={"amount": inferred}) if posting.amount is None else posting
        for posting in entry.postings
    ]
    return entry.model_copy(update={"postings": postings}), None


def balance_transactions(entries: list[ir.Entry]) -> BalanceResult:
    """
    Fill the single missing posting amount of every transaction.

    Non-transaction entries pass through untouched. Order is preserved.
    """
    result = BalanceResult()
    for entry in entries:
        if not isinstance(entry, ir.Transaction):
            result.entries.append(entry)
            continue

        balanced, error = balance_transaction(entry)
        if error is not None:
            result.errors.append(BalanceError(source=entry.meta, message=error, entry=entry))
        result.entries.append(balanced)
    return result
