"""Pick the statement layout parser for a set of lines.

Parsers are tried in a fixed priority order and the first one that yields at
least one valid transaction wins; results are never merged across parsers.
When every parser comes back empty the statement is reported as unparsed
(``parser is None``) and a diagnostic dump is written to the log so an
operator can see what the text looked like without re-running anything.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..builder import build_transactions
from ..logging_setup import get_logger
from ..models import RawTransaction, Transaction
from .adapters import amex_statement, nz_bank, standard_bank, tabular

type LineParser = Callable[[Sequence[str]], list[RawTransaction]]

PARSERS: tuple[tuple[str, LineParser], ...] = (
    (amex_statement.PARSER_NAME, amex_statement.parse_amex_statement),
    (standard_bank.PARSER_NAME, standard_bank.parse_standard_bank),
    (tabular.PARSER_NAME, tabular.parse_tabular),
    (nz_bank.PARSER_NAME, nz_bank.parse_nz_bank),
)

DIAGNOSTIC_LINES = 50
DIAGNOSTIC_DATE_SAMPLES = 5
DIAGNOSTIC_MATCH_SAMPLES = 10

DIAGNOSTIC_DATE_PATTERNS = (
    re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{2,4}"),
    re.compile(r"\d{1,2}\s+[A-Za-z]{3}\s+\d{4}"),
    re.compile(r"\d{4}-\d{1,2}-\d{1,2}"),
)
DIAGNOSTIC_CURRENCY_RE = re.compile(r"[$£€][\d,]+\.?\d{0,2}|NZ\$[\d,]+\.?\d{0,2}")
DIAGNOSTIC_AMOUNT_RE = re.compile(r"\b\d{1,4}[,.]?\d{0,3}\.\d{2}\b")

logger = get_logger("statement_ingest.ingest.dispatch")


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Transactions from the winning parser; ``parser`` is ``None`` when none matched."""

    parser: str | None
    transactions: tuple[Transaction, ...]
    line_count: int = 0

    @property
    def count(self) -> int:
        return len(self.transactions)


def clean_lines(lines: Iterable[str]) -> list[str]:
    """Strip every line and drop the empty ones."""

    return [s for s in (line.strip() for line in lines) if s]


def extract_transactions(
    lines: Iterable[str], *, parsers: Sequence[tuple[str, LineParser]] = PARSERS
) -> ExtractionResult:
    cleaned = clean_lines(lines)
    for name, parse in parsers:
        raws = parse(cleaned)
        transactions = build_transactions(raws)
        logger.debug(
            "dispatch:attempt parser=%s raw=%d built=%d", name, len(raws), len(transactions)
        )
        if transactions:
            logger.info("dispatch:parsed parser=%s count=%d", name, len(transactions))
            return ExtractionResult(
                parser=name, transactions=tuple(transactions), line_count=len(cleaned)
            )

    log_unparsed_diagnostics(cleaned)
    return ExtractionResult(parser=None, transactions=(), line_count=len(cleaned))


@dataclass(frozen=True, slots=True)
class ParseDiagnostics:
    """What an unparsed statement looks like, for the operator log."""

    line_count: int
    first_lines: tuple[str, ...]
    date_samples: tuple[tuple[str, ...], ...]
    currency_matches: tuple[str, ...]
    amount_matches: tuple[str, ...]


def collect_diagnostics(lines: Sequence[str]) -> ParseDiagnostics:
    text = "\n".join(lines)
    return ParseDiagnostics(
        line_count=len(lines),
        first_lines=tuple(lines[:DIAGNOSTIC_LINES]),
        date_samples=tuple(
            tuple(pattern.findall(text)[:DIAGNOSTIC_DATE_SAMPLES])
            for pattern in DIAGNOSTIC_DATE_PATTERNS
        ),
        currency_matches=tuple(DIAGNOSTIC_CURRENCY_RE.findall(text)[:DIAGNOSTIC_MATCH_SAMPLES]),
        amount_matches=tuple(DIAGNOSTIC_AMOUNT_RE.findall(text)[:DIAGNOSTIC_MATCH_SAMPLES]),
    )


def log_unparsed_diagnostics(lines: Sequence[str]) -> ParseDiagnostics:
    diag = collect_diagnostics(lines)
    logger.warning("dispatch:no_parser_matched line_count=%d", diag.line_count)
    for i, line in enumerate(diag.first_lines, start=1):
        logger.warning("dispatch:line n=%d text=%r", i, line)
    for i, samples in enumerate(diag.date_samples, start=1):
        logger.warning("dispatch:date_pattern n=%d matches=%s", i, list(samples) or "None")
    logger.warning("dispatch:currency_matches matches=%s", list(diag.currency_matches) or "None")
    logger.warning("dispatch:amount_matches matches=%s", list(diag.amount_matches) or "None")
    return diag


__all__ = [
    "PARSERS",
    "ExtractionResult",
    "ParseDiagnostics",
    "clean_lines",
    "collect_diagnostics",
    "extract_transactions",
    "log_unparsed_diagnostics",
]
