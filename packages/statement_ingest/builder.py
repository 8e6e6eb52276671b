"""Turn parser triples into fully formed :class:`Transaction` records.

The builder is the single gate every parsed candidate passes through, so the
transaction invariants live here: a real calendar date, a non-empty place
(interior spacing untouched) and an amount inside ``(0, 50000)``. A candidate
that fails any check is dropped and logged; it never aborts the parse.
"""

from __future__ import annotations

from collections.abc import Iterable

from .classification import categorize_merchant
from .logging_setup import get_logger
from .models import RawTransaction, Transaction
from .normalizers import format_amount, is_valid_amount, is_valid_iso_date, round_amount
from .statement_period import compute_statement_period

DEFAULT_CURRENCY = "NZD"

logger = get_logger("statement_ingest.builder")


def _rejection_reason(raw: RawTransaction, place: str) -> str | None:
    if not place:
        return "empty_place"
    if not is_valid_iso_date(raw.date_iso):
        return "invalid_date"
    if not is_valid_amount(raw.value) or not is_valid_amount(round_amount(raw.value)):
        return "amount_out_of_bounds"
    return None


def build_transaction(raw: RawTransaction) -> Transaction | None:
    """Classify, date and format one raw triple; ``None`` when it is invalid."""

    # Only the ends are trimmed; interior spacing is part of the dedup key.
    place = raw.description.strip()
    reason = _rejection_reason(raw, place)
    if reason is not None:
        logger.debug(
            "build:rejected reason=%s line=%s date=%r place=%r value=%s",
            reason,
            raw.line_index,
            raw.date_iso,
            raw.description,
            raw.value,
        )
        return None

    value = round_amount(raw.value)
    category, subcategory = categorize_merchant(place)
    period = compute_statement_period(raw.date_iso)
    return Transaction(
        place=place,
        amount=format_amount(value),
        date=raw.date_iso,
        currency=DEFAULT_CURRENCY,
        value=value,
        date_iso=raw.date_iso,
        category=category,
        subcategory=subcategory,
        statement_id=period.statement_id,
        statement_start=period.statement_start,
        statement_end=period.statement_end,
    )


def build_transactions(raws: Iterable[RawTransaction]) -> list[Transaction]:
    built: list[Transaction] = []
    for raw in raws:
        tx = build_transaction(raw)
        if tx is not None:
            built.append(tx)
    return built


__all__ = ["DEFAULT_CURRENCY", "build_transaction", "build_transactions"]
