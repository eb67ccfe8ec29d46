"""
Directive entry types for beanparse IR.

This module contains the records produced by the document parser:
generic schema-driven entries, transactions with their postings, and the
``unknown_directive`` recovery entry.

Schema-driven entries keep their fields as dynamic attributes:

    2024-01-01 open Assets:Cash USD,BRL #primary
      description: "Main account"

    Entry(kind="open", date="2024-01-01", keyword="open",
          account="Assets:Cash", currencies=["USD", "BRL"],
          tags=["primary"], links=[],
          meta={"description": "Main account", "location": "stdin:1"})
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Metadata values are exhaustively coerced to one of these
MetaValue = str | int | float | bool | None
Meta = dict[str, MetaValue]


class Amount(BaseModel):
    """
    A number paired with a currency or commodity code.

    Attributes:
        value: Signed quantity
        currency: Currency/commodity code (e.g. USD, GOVT_BOND_2029)
    """

    value: float
    currency: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.value:g} {self.currency}"


class TagOrLink(BaseModel):
    """A ``#tag`` or ``^link`` token, tagged so mixed sequences keep source order."""

    type: Literal["tag", "link"]
    value: str

    model_config = ConfigDict(frozen=True)


class Posting(BaseModel):
    """
    One account line in a transaction body.

    Attributes:
        account: Account name
        amount: Amount, absent when left for the balancing pass to infer
        meta: Metadata indented below the posting
    """

    account: str
    amount: Amount | None = None
    meta: Meta = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class Entry(BaseModel):
    """
    A parsed top-level directive.

    ``meta`` always carries ``location`` ("<source>:<line>") once the entry
    leaves the document parser. Fields declared by the directive schema are
    stored as extra attributes.
    """

    kind: str
    date: str = ""
    meta: Meta = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="allow")

    @property
    def location(self) -> str | None:
        return self.meta.get("location")

    def get(self, name: str, default: Any = None) -> Any:
        """Return a field (declared or dynamic) by name."""
        return getattr(self, name, default)


class Transaction(Entry):
    """
    A double-entry transaction.

    Attributes:
        flag: ``*`` (complete) or ``!`` (incomplete)
        payee: Optional payee, present when two quoted strings head the entry
        narration: Description
        postings: Account lines in source order
        tags: ``#tag`` values from the header line
        links: ``^link`` values from the header line
    """

    kind: str = "transaction"
    flag: str
    payee: str | None = None
    narration: str
    postings: list[Posting] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)

    def postings_without_amount(self) -> list[Posting]:
        return [p for p in self.postings if p.amount is None]


class UnknownDirective(Entry):
    """
    Recovery entry for a line no registered directive could parse.

    Attributes:
        type: Best-effort directive keyword (word after the date)
        value: Second quoted substring of the body, when present
        body: The offending line plus its indented continuation, de-indented
    """

    kind: str = "unknown_directive"
    type: str = ""
    value: str | None = None
    body: str = ""

    @property
    def warning(self) -> str | None:
        return self.meta.get("warning")
