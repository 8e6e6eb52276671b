"""Data models for ``statement_ingest``.

Intermediate parser records (:class:`TransactionLine`, :class:`AmountCandidate`,
:class:`RawTransaction`) and the persisted :class:`Transaction` are frozen
dataclasses: once built they are never mutated, and a changed copy is derived
with :func:`dataclasses.replace`. Response payloads are pydantic models so the
JSON contract (``duplicateCount``, ``saveResult``) is validated in one place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Parser intermediates
# ---------------------------------------------------------------------------

type RawLine = str
"""One logical line of statement text, in top-to-bottom order."""


@dataclass(frozen=True, slots=True)
class TransactionLine:
    """A date-prefixed line without an amount (Amex split layout).

    ``date`` keeps the statement's ``DD.MM.YY`` form; ``description`` keeps the
    interior spacing exactly as extracted.
    """

    date: str
    description: str
    line_index: int


@dataclass(frozen=True, slots=True)
class AmountCandidate:
    """A standalone amount token that may belong to some transaction line."""

    value: Decimal
    line_index: int


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """The ``(date, description, amount)`` triple a format parser emits."""

    date_iso: str
    description: str
    value: Decimal
    line_index: int | None = None


class Classification(NamedTuple):
    category: str
    subcategory: str


@dataclass(frozen=True, slots=True)
class StatementPeriod:
    """Billing cycle enclosing a transaction date (27th to 26th).

    All three fields are ``None`` when the date is missing or unparseable.
    """

    statement_id: str | None = None
    statement_start: str | None = None
    statement_end: str | None = None


# ---------------------------------------------------------------------------
# Persisted unit
# ---------------------------------------------------------------------------


def natural_key(date_iso: str | None, place: str | None) -> tuple[str, str]:
    """Duplicate identity: ``(date_iso, place.strip().lower())``."""

    return (date_iso or "", (place or "").strip().lower())


@dataclass(frozen=True, slots=True)
class Transaction:
    """A fully built statement transaction.

    Invariants (enforced by :mod:`statement_ingest.builder` and the JSON
    re-import normalizer): ``place`` is non-empty with its interior spacing
    preserved, ``value`` is finite and inside ``(0, 50000)``, ``date_iso`` is a
    real calendar date. ``id`` is assigned by the store and is ``None`` on
    freshly parsed records.
    """

    place: str
    amount: str
    date: str
    currency: str
    value: Decimal
    date_iso: str
    category: str = "Other"
    subcategory: str = "General"
    statement_id: str | None = None
    statement_start: str | None = None
    statement_end: str | None = None
    id: int | None = None

    @property
    def natural_key(self) -> tuple[str, str]:
        return natural_key(self.date_iso, self.place)

    def to_json(self) -> dict[str, Any]:
        """Return the wire shape; ``value`` becomes a JSON number."""

        out: dict[str, Any] = {
            "place": self.place,
            "amount": self.amount,
            "date": self.date,
            "currency": self.currency,
            "value": float(self.value),
            "date_iso": self.date_iso,
            "category": self.category,
            "subcategory": self.subcategory,
            "statement_id": self.statement_id,
            "statement_start": self.statement_start,
            "statement_end": self.statement_end,
        }
        if self.id is not None:
            out["id"] = self.id
        return out


# ---------------------------------------------------------------------------
# Reconciliation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PendingUpdate:
    """A stored record to PATCH: the existing fields overlaid with new ones."""

    id: int
    data: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Reconciliation:
    new_transactions: tuple[Transaction, ...] = ()
    updates: tuple[PendingUpdate, ...] = ()
    duplicate_count: int = 0
    total: int = 0


# ---------------------------------------------------------------------------
# Response payloads
# ---------------------------------------------------------------------------


class UploadResult(BaseModel):
    """Outcome of an upload or bulk re-import.

    Serialized with :meth:`to_payload` using the camelCase keys callers of the
    upload endpoint expect (``duplicateCount``, ``saveResult``).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    success: bool = True
    transactions: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0
    duplicate_count: int = Field(default=0, alias="duplicateCount")
    updated: int = 0
    saved: bool = False
    message: str | None = None
    save_result: Any = Field(default=None, alias="saveResult")

    @field_validator("count", "duplicate_count", "updated")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("counts must be non-negative")
        return v

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = [
    "AmountCandidate",
    "Classification",
    "PendingUpdate",
    "RawLine",
    "RawTransaction",
    "Reconciliation",
    "StatementPeriod",
    "Transaction",
    "TransactionLine",
    "UploadResult",
    "natural_key",
]
