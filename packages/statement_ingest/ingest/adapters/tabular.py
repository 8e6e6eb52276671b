"""Column-aligned statement layout.

Same date and amount shapes as the standard-bank layout, but the columns must
be separated by at least two whitespace characters. That requirement tells a
genuinely tabular export apart from prose that happens to start with a date.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from ...models import RawTransaction
from ...normalizers import is_valid_amount, parse_amount, to_iso_date

PARSER_NAME = "tabular"

LINE_RE = re.compile(
    r"^(\d{1,2}[/-]\d{1,2}[/-]\d{4})\s{2,}(.+?)\s{2,}([$£€]?[\d,]+\.?\d{0,2})$"
)
_DATE_SPLIT_RE = re.compile(r"[/-]")
SKIPPED_TERMS = ("payment", "credit")


def parse_tabular(lines: Sequence[str]) -> list[RawTransaction]:
    out: list[RawTransaction] = []
    for i, line in enumerate(lines):
        m = LINE_RE.match(line)
        if not m:
            continue
        date_raw, description, amount_raw = m.groups()
        if any(term in description.lower() for term in SKIPPED_TERMS):
            continue
        value = parse_amount(amount_raw)
        if value is None or not is_valid_amount(value):
            continue
        day, month, year = _DATE_SPLIT_RE.split(date_raw)
        out.append(
            RawTransaction(
                date_iso=to_iso_date(year, month, day),
                description=description.strip(),
                value=value,
                line_index=i,
            )
        )
    return out


__all__ = ["PARSER_NAME", "parse_tabular"]
