"""Billing-cycle lookup for a transaction date.

Statements close on the 26th of each month. A transaction dated on or before
the 26th belongs to the cycle closing that month; anything after the 26th
rolls into the cycle closing the following month (December rolls into January
of the next year). A cycle opens on the 27th of the month before it closes.
"""

from __future__ import annotations

from datetime import date

from .models import StatementPeriod
from .normalizers import is_valid_iso_date

CLOSING_DAY = 26
OPENING_DAY = CLOSING_DAY + 1

_EMPTY = StatementPeriod()


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def compute_statement_period(date_iso: str | None) -> StatementPeriod:
    """Return ``(statement_id, statement_start, statement_end)`` for ``date_iso``.

    ``statement_id`` equals ``statement_end``. Missing or unparseable input
    yields a period whose fields are all ``None``.

    >>> compute_statement_period("2025-09-26").statement_start
    '2025-08-27'
    >>> compute_statement_period("2025-12-30").statement_end
    '2026-01-26'
    """

    if not date_iso:
        return _EMPTY
    candidate = date_iso.strip()
    if not is_valid_iso_date(candidate):
        return _EMPTY
    d = date.fromisoformat(candidate)

    closing_year, closing_month = d.year, d.month
    if d.day > CLOSING_DAY:
        closing_year, closing_month = _shift_month(closing_year, closing_month, 1)
    opening_year, opening_month = _shift_month(closing_year, closing_month, -1)

    end = date(closing_year, closing_month, CLOSING_DAY).isoformat()
    start = date(opening_year, opening_month, OPENING_DAY).isoformat()
    return StatementPeriod(statement_id=end, statement_start=start, statement_end=end)


__all__ = ["CLOSING_DAY", "OPENING_DAY", "compute_statement_period"]
