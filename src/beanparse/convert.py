"""
Conversion from beancount-style entry dicts to beanparse entries.

Beancount-style entries use ``type`` for the directive kind and
``{number, currency}`` amounts; beanparse entries use ``kind`` and
``{value, currency}``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .core import ir

_RESERVED = ("type", "kind", "date", "meta")


def convert_amount(amount: Mapping[str, Any] | None) -> ir.Amount | None:
    if not amount or amount.get("number") is None:
        return None
    return ir.Amount(value=float(amount["number"]), currency=str(amount["currency"]))


def convert_posting(posting: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "account": posting.get("account"),
        "amount": convert_amount(posting.get("amount")),
        "cost": convert_amount(posting.get("cost")),
        "price": convert_amount(posting.get("price")),
        "flag": posting.get("flag"),
        "meta": dict(posting.get("meta") or {}),
    }


def convert_entry(entry: Mapping[str, Any]) -> ir.Entry:
    """Convert one beancount-style entry; unknown keys are copied through."""
    values: dict[str, Any] = {k: v for k, v in entry.items() if k not in _RESERVED}

    if entry.get("type") == "transaction" and entry.get("postings"):
        values["postings"] = [convert_posting(p) for p in entry["postings"]]

    amount = entry.get("amount")
    if isinstance(amount, Mapping) and amount.get("number") is not None:
        values["amount"] = convert_amount(amount)

    return ir.Entry(
        **values,
        kind=str(entry.get("type", "")),
        date=str(entry.get("date", "")),
        meta=dict(entry.get("meta") or {}),
    )


def convert_beancount_entries(entries: Iterable[Mapping[str, Any]]) -> list[ir.Entry]:
    return [convert_entry(entry) for entry in entries]
