"""Single-line bank statement layout: ``DD/MM/YYYY <description> <amount>``.

Day/month separators may be ``/`` or ``-`` and the amount may carry a leading
``$``, ``£`` or ``€``. One line is one transaction; no cross-line matching.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from ...logging_setup import get_logger
from ...models import RawTransaction
from ...normalizers import is_valid_amount, parse_amount, to_iso_date

PARSER_NAME = "standard_bank"

LINE_RE = re.compile(
    r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})\s+(.+?)\s+([$£€]?[\d,]+\.?\d{0,2})$"
)
SKIPPED_TERMS = ("payment", "credit", "thank you")

logger = get_logger("statement_ingest.ingest.adapters.standard_bank")


def parse_standard_bank(lines: Sequence[str]) -> list[RawTransaction]:
    out: list[RawTransaction] = []
    for i, line in enumerate(lines):
        m = LINE_RE.match(line)
        if not m:
            continue
        day, month, year, description, amount_raw = m.groups()
        if any(term in description.lower() for term in SKIPPED_TERMS):
            logger.debug("standard_bank:skipped line=%d reason=payment_or_credit", i)
            continue
        value = parse_amount(amount_raw)
        if value is None or not is_valid_amount(value):
            continue
        out.append(
            RawTransaction(
                date_iso=to_iso_date(year, month, day),
                description=description.strip(),
                value=value,
                line_index=i,
            )
        )
    return out


__all__ = ["PARSER_NAME", "parse_standard_bank"]
