"""Amount and date normalization shared by every statement parser.

Amounts are handled as :class:`~decimal.Decimal` end to end so the display
string (``"$9.30"``) and the numeric ``value`` never disagree. Dates are
emitted as ISO ``YYYY-MM-DD`` strings; two-digit years always map to 20YY.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Exclusive bounds for an accepted transaction amount.
AMOUNT_FLOOR = Decimal("0")
AMOUNT_CEILING = Decimal("50000")

_CENT = Decimal("0.01")
_CURRENCY_PREFIX_RE = re.compile(r"^(?:NZ\$|[$£€])\s*")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_amount(raw: str | None) -> Decimal | None:
    """Parse an amount token such as ``"1,234.56"``, ``"$40.00"`` or ``"NZ$9.3"``.

    Returns ``None`` when the token is empty or not numeric. No bounds check is
    applied here; see :func:`is_valid_amount`.
    """

    if raw is None:
        return None
    s = _CURRENCY_PREFIX_RE.sub("", raw.strip())
    s = s.replace(",", "").strip()
    if not s:
        return None
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def to_decimal(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        return parse_amount(value)
    try:
        # str() first so 9.3 becomes Decimal("9.3") rather than its binary expansion.
        return Decimal(str(value))
    except InvalidOperation:
        return None


def is_valid_amount(value: Decimal | float | int | None) -> bool:
    """True when ``value`` is finite and strictly inside ``(0, 50000)``."""

    d = to_decimal(value)
    if d is None or not d.is_finite():
        return False
    return AMOUNT_FLOOR < d < AMOUNT_CEILING


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal | float | int) -> str:
    """Render ``value`` as ``"$"`` plus exactly two decimals (``9.3 -> "$9.30"``)."""

    d = to_decimal(value)
    if d is None or not d.is_finite():
        raise ValueError(f"cannot format amount: {value!r}")
    return f"${round_amount(d):.2f}"


def expand_year(year: str) -> str:
    """Map a two-digit year to 20YY; four-digit years pass through."""

    y = year.strip()
    return f"20{y}" if len(y) == 2 else y


def to_iso_date(year: str, month: str, day: str) -> str:
    """Compose ``YYYY-MM-DD`` from raw parts, zero-padding month and day.

    The result is not validated; callers check it with :func:`is_valid_iso_date`.
    """

    return f"{expand_year(year)}-{month.strip().zfill(2)}-{day.strip().zfill(2)}"


def dotted_date_to_iso(date_str: str) -> str:
    """Convert ``DD.MM.YY`` (as printed on Amex statements) to ``YYYY-MM-DD``.

    ``"29.08.25"`` becomes ``"2025-08-29"``.
    """

    day, month, year = (part.strip() for part in date_str.split("."))
    return to_iso_date(year, month, day)


def is_valid_iso_date(value: str | None) -> bool:
    if not value or not _ISO_DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


__all__ = [
    "AMOUNT_CEILING",
    "AMOUNT_FLOOR",
    "dotted_date_to_iso",
    "expand_year",
    "format_amount",
    "is_valid_amount",
    "is_valid_iso_date",
    "parse_amount",
    "round_amount",
    "to_decimal",
    "to_iso_date",
]
