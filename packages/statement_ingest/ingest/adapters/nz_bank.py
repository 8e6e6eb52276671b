"""Common New Zealand bank statement layouts.

Three line shapes are tried in order; the first that matches a line wins:

- ``01 Aug 2024  MERCHANT NAME  $123.45`` (``NZ$`` or ``$`` optional)
- ``01/08/24  MERCHANT NAME  $123.45`` (two-digit year read as 20YY)
- ``2024-08-01  MERCHANT NAME  123.45``
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence

from ...logging_setup import get_logger
from ...models import RawTransaction
from ...normalizers import is_valid_amount, parse_amount, to_iso_date

PARSER_NAME = "nz_bank"

MONTHS = {
    "jan": "01",
    "feb": "02",
    "mar": "03",
    "apr": "04",
    "may": "05",
    "jun": "06",
    "jul": "07",
    "aug": "08",
    "sep": "09",
    "oct": "10",
    "nov": "11",
    "dec": "12",
}

SKIPPED_TERMS = ("payment", "credit", "transfer in")

# Each extractor returns (year, month, day, description, amount).
type _Parts = tuple[str, str, str, str, str]

logger = get_logger("statement_ingest.ingest.adapters.nz_bank")


def _month_name(m: re.Match[str]) -> _Parts:
    day, month, year, description, _currency, amount = m.groups()
    # Unknown month names pass through and fail date validation later.
    return year, MONTHS.get(month.lower(), month), day, description, amount


def _short_year(m: re.Match[str]) -> _Parts:
    day, month, year, description, _currency, amount = m.groups()
    return f"20{year}", month, day, description, amount


def _iso(m: re.Match[str]) -> _Parts:
    year, month, day, description, amount = m.groups()
    return year, month, day, description, amount


PATTERNS: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], _Parts]], ...] = (
    (
        re.compile(r"^(\d{1,2})\s+([A-Za-z]{3})\s+(\d{4})\s+(.+?)\s+(NZ\$|\$)?([\d,]+\.?\d{0,2})$"),
        _month_name,
    ),
    (
        re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2})\s+(.+?)\s+(NZ\$|\$)?([\d,]+\.?\d{0,2})$"),
        _short_year,
    ),
    (
        re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})\s+(.+?)\s+([\d,]+\.?\d{0,2})$"),
        _iso,
    ),
)


def _parse_line(line: str, index: int) -> RawTransaction | None:
    for pattern, extract in PATTERNS:
        m = pattern.match(line)
        if not m:
            continue
        year, month, day, description, amount_raw = extract(m)
        if any(term in description.lower() for term in SKIPPED_TERMS):
            logger.debug("nz_bank:skipped line=%d reason=payment_credit_or_transfer", index)
            continue
        value = parse_amount(amount_raw)
        if value is None or not is_valid_amount(value):
            continue
        return RawTransaction(
            date_iso=to_iso_date(year, month, day),
            description=description.strip(),
            value=value,
            line_index=index,
        )
    return None


def parse_nz_bank(lines: Sequence[str]) -> list[RawTransaction]:
    out: list[RawTransaction] = []
    for i, line in enumerate(lines):
        tx = _parse_line(line, i)
        if tx is not None:
            out.append(tx)
    return out


__all__ = ["MONTHS", "PARSER_NAME", "parse_nz_bank"]
