"""Parser for American Express NZ statement text.

Amex statements print dates as ``DD.MM.YY``; PDF extraction frequently pads
the dots with spaces (``29 . 08 . 25``). Two layouts occur:

Direct mode
    Date, description and amount on one line. When any such line carries a
    real calendar date the parser returns the direct matches only.

Split mode
    Transaction lines (date + description) and amounts land on separate
    lines. The first ``SUMMARY_SECTION_LINES`` lines hold the account summary,
    which repeats some transactions and prints header totals; both pools skip
    that region. Amount candidates are further filtered (credits,
    percentages, header totals, the minimum-payment amount) and then paired
    with transaction lines:

    a. sequential alignment when the pool sizes differ by at most
       ``SEQUENTIAL_COUNT_TOLERANCE``;
    b. otherwise, per transaction line, the nearest unused amount up to
       ``PROXIMITY_AFTER`` lines after it, then up to ``PROXIMITY_BEFORE``
       lines before it, then on the same line.

The line-offset thresholds were tuned against one issuer template; they are
module constants so a different layout can be accommodated without touching
the control flow.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import Decimal

from ...logging_setup import get_logger
from ...models import AmountCandidate, RawTransaction, TransactionLine
from ...normalizers import dotted_date_to_iso, is_valid_amount, is_valid_iso_date, parse_amount

PARSER_NAME = "amex"

# Lines before this index are summary/header noise in split mode.
SUMMARY_SECTION_LINES = 50
# Lines scanned for the "Minimum Payment $X" header amount.
MINIMUM_PAYMENT_SCAN_LINES = 50
SEQUENTIAL_COUNT_TOLERANCE = 2
ALIGNMENT_WINDOW = 30
PROXIMITY_AFTER = 5
PROXIMITY_BEFORE = 30
MINIMUM_PAYMENT_EPSILON = Decimal("0.01")

DIRECT_RE = re.compile(r"^(\d{2})\s*\.\s*(\d{2})\s*\.\s*(\d{2})\s+(.+?)\s+([\d,]+\.\d{2})$")
TRANSACTION_RE = re.compile(r"^(\d{2})\s*\.\s*(\d{2})\s*\.\s*(\d{2})\s+(.+)$")
AMOUNT_RE = re.compile(r"^([\d,]+\.\d{2})$")
MINIMUM_PAYMENT_RE = re.compile(r"Minimum\s+Payment\s+\$?\s*([\d,]+\.?\d{0,2})", re.IGNORECASE)

SKIPPED_DESCRIPTIONS = ("PAYMENT - THANK YOU", "Total of New Transactions")
HEADER_MARKERS = ("Minimum Payment", "Credit Limit", "Due by")
CREDIT_MARKER = "CR"

logger = get_logger("statement_ingest.ingest.adapters.amex_statement")


def _is_skipped_description(description: str) -> bool:
    return any(marker in description for marker in SKIPPED_DESCRIPTIONS)


def find_minimum_payment(lines: Sequence[str]) -> Decimal | None:
    """Return the first "Minimum Payment" amount within the header lines."""

    for i, line in enumerate(lines[:MINIMUM_PAYMENT_SCAN_LINES]):
        m = MINIMUM_PAYMENT_RE.search(line)
        if not m:
            continue
        value = parse_amount(m.group(1))
        if value is not None:
            logger.debug("amex:minimum_payment value=%s line=%d", value, i)
            return value
    return None


def _amount_skip_reason(
    lines: Sequence[str], i: int, value: Decimal | None, minimum_payment: Decimal | None
) -> str | None:
    line = lines[i]
    next_line = lines[i + 1] if i + 1 < len(lines) else ""
    prev_line = lines[i - 1] if i > 0 else ""
    prev2_line = lines[i - 2] if i > 1 else ""
    prev3_line = lines[i - 3] if i > 2 else ""

    if CREDIT_MARKER in line or "%" in line or next_line == CREDIT_MARKER:
        return "credit_or_percentage"
    if any(marker in prev_line for marker in HEADER_MARKERS) or "Minimum Payment" in line:
        return "header_total"
    if "Minimum Payment" in prev2_line or "Minimum Payment" in prev3_line:
        return "near_minimum_payment"
    if value is None or not is_valid_amount(value):
        return "out_of_bounds"
    if minimum_payment is not None and abs(value - minimum_payment) < MINIMUM_PAYMENT_EPSILON:
        return "minimum_payment"
    return None


def _date_from_match(m: re.Match[str]) -> str:
    day, month, year = m.group(1), m.group(2), m.group(3)
    return f"{day}.{month}.{year}"


def collect_candidates(
    lines: Sequence[str],
) -> tuple[list[RawTransaction], list[TransactionLine], list[AmountCandidate]]:
    """Single pass over ``lines`` sorting each into one of three pools.

    Returns ``(direct, transaction_lines, amounts)``. Direct matches are
    collected at any position; the other two pools ignore the summary region.
    """

    minimum_payment = find_minimum_payment(lines)
    direct: list[RawTransaction] = []
    transaction_lines: list[TransactionLine] = []
    amounts: list[AmountCandidate] = []

    for i, line in enumerate(lines):
        m = DIRECT_RE.match(line)
        if m:
            description = m.group(4)
            if _is_skipped_description(description):
                logger.debug("amex:direct_skipped line=%d reason=payment_or_total", i)
                continue
            value = parse_amount(m.group(5))
            if value is None or not is_valid_amount(value):
                logger.debug("amex:direct_skipped line=%d reason=out_of_bounds", i)
                continue
            direct.append(
                RawTransaction(
                    date_iso=dotted_date_to_iso(_date_from_match(m)),
                    description=description.strip(),
                    value=value,
                    line_index=i,
                )
            )
            continue

        m = TRANSACTION_RE.match(line)
        if m:
            if i < SUMMARY_SECTION_LINES:
                logger.debug("amex:transaction_skipped line=%d reason=summary_section", i)
                continue
            description = m.group(4)
            if _is_skipped_description(description):
                logger.debug("amex:transaction_skipped line=%d reason=payment_or_total", i)
                continue
            transaction_lines.append(
                TransactionLine(
                    date=_date_from_match(m), description=description.strip(), line_index=i
                )
            )
            continue

        m = AMOUNT_RE.match(line)
        if m:
            if i < SUMMARY_SECTION_LINES:
                continue
            value = parse_amount(m.group(1))
            reason = _amount_skip_reason(lines, i, value, minimum_payment)
            if reason is not None:
                logger.debug("amex:amount_skipped line=%d value=%s reason=%s", i, line, reason)
                continue
            assert value is not None  # guarded by _amount_skip_reason
            amounts.append(AmountCandidate(value=value, line_index=i))

    logger.debug(
        "amex:collected direct=%d transaction_lines=%d amounts=%d",
        len(direct),
        len(transaction_lines),
        len(amounts),
    )
    return direct, transaction_lines, amounts


def _pair(line: TransactionLine, amount: AmountCandidate) -> RawTransaction:
    return RawTransaction(
        date_iso=dotted_date_to_iso(line.date),
        description=line.description,
        value=amount.value,
        line_index=line.line_index,
    )


def align_sequentially(
    transaction_lines: Sequence[TransactionLine], amounts: Sequence[AmountCandidate]
) -> list[RawTransaction]:
    """Pair both pools positionally; empty when the pool sizes are too far apart.

    When amounts outnumber transaction lines, pairing starts at the first
    amount within ``ALIGNMENT_WINDOW`` lines of the first transaction line,
    which skips stray header amounts ahead of the list.
    """

    if not transaction_lines or not amounts:
        return []
    if abs(len(transaction_lines) - len(amounts)) > SEQUENTIAL_COUNT_TOLERANCE:
        return []

    start = 0
    if len(amounts) > len(transaction_lines):
        first_line = transaction_lines[0].line_index
        for k, amount in enumerate(amounts):
            if abs(amount.line_index - first_line) <= ALIGNMENT_WINDOW:
                start = k
                break
        logger.debug("amex:sequential_offset offset=%d first_line=%d", start, first_line)

    paired: list[RawTransaction] = []
    for k in range(min(len(transaction_lines), len(amounts))):
        if start + k >= len(amounts):
            break
        paired.append(_pair(transaction_lines[k], amounts[start + k]))
    return paired


def find_closest_amount(
    line_index: int, amounts: Sequence[AmountCandidate], used: set[int]
) -> int | None:
    """Index into ``amounts`` of the best unused candidate for a line, or ``None``.

    Preference: nearest within ``PROXIMITY_AFTER`` lines after, then nearest
    within ``PROXIMITY_BEFORE`` lines before, then the same line. The chosen
    index is added to ``used``.
    """

    best: int | None = None
    best_distance: int | None = None

    for k, amount in enumerate(amounts):
        if k in used:
            continue
        distance = amount.line_index - line_index
        if 0 < distance <= PROXIMITY_AFTER and (best_distance is None or distance < best_distance):
            best, best_distance = k, distance

    if best is None:
        for k, amount in enumerate(amounts):
            if k in used:
                continue
            distance = line_index - amount.line_index
            if 0 < distance <= PROXIMITY_BEFORE and (
                best_distance is None or distance < best_distance
            ):
                best, best_distance = k, distance

    if best is None:
        for k, amount in enumerate(amounts):
            if k not in used and amount.line_index == line_index:
                best = k
                break

    if best is not None:
        used.add(best)
    return best


def match_by_proximity(
    transaction_lines: Sequence[TransactionLine], amounts: Sequence[AmountCandidate]
) -> list[RawTransaction]:
    used: set[int] = set()
    paired: list[RawTransaction] = []
    for line in transaction_lines:
        k = find_closest_amount(line.line_index, amounts, used)
        if k is None:
            logger.debug(
                "amex:unmatched line=%d description=%r", line.line_index, line.description
            )
            continue
        paired.append(_pair(line, amounts[k]))
    return paired


def parse_amex_statement(lines: Sequence[str]) -> list[RawTransaction]:
    """Extract ``(date, description, amount)`` triples from Amex statement lines."""

    direct, transaction_lines, amounts = collect_candidates(lines)
    if any(is_valid_iso_date(t.date_iso) for t in direct):
        logger.debug("amex:mode mode=direct count=%d", len(direct))
        return direct

    sequential = align_sequentially(transaction_lines, amounts)
    if sequential:
        logger.debug("amex:mode mode=sequential count=%d", len(sequential))
        return sequential

    proximity = match_by_proximity(transaction_lines, amounts)
    logger.debug("amex:mode mode=proximity count=%d", len(proximity))
    return proximity


__all__ = [
    "ALIGNMENT_WINDOW",
    "PARSER_NAME",
    "PROXIMITY_AFTER",
    "PROXIMITY_BEFORE",
    "SEQUENTIAL_COUNT_TOLERANCE",
    "SUMMARY_SECTION_LINES",
    "align_sequentially",
    "collect_candidates",
    "find_closest_amount",
    "find_minimum_payment",
    "match_by_proximity",
    "parse_amex_statement",
]
