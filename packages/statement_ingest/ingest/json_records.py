"""Bulk re-import of transactions exported as JSON.

Exports come from older versions of the app, spreadsheets and hand edits, so
the payload is loosely shaped. This module accepts either a bare array or an
envelope ``{"transactions": [...]}`` and normalizes each entry into a strict
:class:`~statement_ingest.models.Transaction` with an explicit fallback chain
per field:

- ``place``: trimmed text; required.
- ``date_iso``: ``date_iso`` then ``date``; ``YYYY-MM-DD``, ``DD/MM/YYYY``,
  ``DD.MM.YY``/``DD.MM.YYYY`` or any ISO datetime; required.
- ``date``: always the resolved ``date_iso``, whatever format came in.
- ``value``: numeric ``value``, else the digits of ``amount``, else the digits
  of a textual ``value``; rounded to cents and bounded like parsed amounts.
- ``currency``, ``amount``, ``category``, ``subcategory`` and the statement
  fields keep incoming text and otherwise fall back to computed values.

Entries failing a required field are dropped and logged.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..builder import DEFAULT_CURRENCY
from ..classification import categorize_merchant
from ..logging_setup import get_logger
from ..models import Transaction
from ..normalizers import (
    format_amount,
    is_valid_amount,
    is_valid_iso_date,
    round_amount,
    to_iso_date,
)
from ..statement_period import compute_statement_period

_BOM = "\ufeff"
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_FINAL_COMMA_RE = re.compile(r",\s*$")
_NON_NUMERIC_RE = re.compile(r"[^0-9.-]")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLASH_DATE_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
_DOT_DATE_RE = re.compile(r"^(\d{2})\.(\d{2})\.(\d{2,4})$")

logger = get_logger("statement_ingest.ingest.json_records")


class IncomingRecord(BaseModel):
    """One loosely typed export entry.

    Text fields keep only non-blank strings; anything else becomes ``None`` so
    the fallback chain takes over. ``value`` and ``amount`` stay raw because
    either may be a number or display text.
    """

    model_config = ConfigDict(extra="allow")

    id: int | None = None
    place: str | None = None
    date: str | None = None
    date_iso: str | None = None
    value: Any = None
    amount: Any = None
    currency: str | None = None
    category: str | None = None
    subcategory: str | None = None
    statement_id: str | None = None
    statement_start: str | None = None
    statement_end: str | None = None

    @field_validator(
        "place",
        "date",
        "date_iso",
        "currency",
        "category",
        "subcategory",
        "statement_id",
        "statement_start",
        "statement_end",
        mode="before",
    )
    @classmethod
    def _text_or_none(cls, v: Any) -> str | None:
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @field_validator("id", mode="before")
    @classmethod
    def _integer_id(cls, v: Any) -> int | None:
        if isinstance(v, bool) or not isinstance(v, int):
            return None
        return v


def sanitize_json(raw: str) -> str:
    """Strip a BOM and trailing commas that hand-edited exports often carry."""

    cleaned = raw.strip()
    if cleaned.startswith(_BOM):
        cleaned = cleaned[len(_BOM) :].strip()
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", cleaned)
    return _FINAL_COMMA_RE.sub("", cleaned)


def load_records(raw: str | bytes) -> list[Any]:
    """Parse a JSON payload into a list of raw entries.

    Raises ``ValueError`` for HTML bodies, malformed JSON, unexpected shapes
    and empty payloads.
    """

    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    cleaned = sanitize_json(text)
    if cleaned.startswith("<"):
        raise ValueError("Body appears to be HTML instead of JSON.")
    try:
        body = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON payload: {e}") from e

    if isinstance(body, list):
        entries = body
    elif isinstance(body, Mapping) and isinstance(body.get("transactions"), list):
        entries = body["transactions"]
    else:
        entries = []
    if not entries:
        raise ValueError("No transactions provided in request body")
    return entries


def parse_date_iso(raw: str | None) -> str | None:
    """Best-effort conversion of an export date to ``YYYY-MM-DD``."""

    if not raw:
        return None
    s = raw.strip()
    candidate: str | None = None
    if _ISO_DATE_RE.match(s):
        candidate = s
    elif m := _SLASH_DATE_RE.match(s):
        day, month, year = m.groups()
        candidate = to_iso_date(year, month, day)
    elif m := _DOT_DATE_RE.match(s):
        day, month, year = m.groups()
        candidate = to_iso_date(year, month, day)
    else:
        try:
            candidate = datetime.fromisoformat(s).date().isoformat()
        except ValueError:
            return None
    return candidate if is_valid_iso_date(candidate) else None


def _numeric_text(raw: Any) -> Decimal | None:
    if not isinstance(raw, str):
        return None
    digits = _NON_NUMERIC_RE.sub("", raw)
    if not digits:
        return None
    try:
        value = Decimal(digits)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_value(value: Any, amount: Any) -> Decimal | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        d = Decimal(str(value))
        if d.is_finite():
            return d
    from_amount = _numeric_text(amount)
    if from_amount is not None:
        return from_amount
    return _numeric_text(value)


def normalize_record(entry: Mapping[str, Any]) -> Transaction | None:
    """Normalize one export entry; ``None`` when a required field is unusable."""

    try:
        rec = IncomingRecord.model_validate(dict(entry))
    except ValidationError as e:
        logger.debug("json_records:invalid_entry error=%s", e)
        return None

    date_iso = parse_date_iso(rec.date_iso) or parse_date_iso(rec.date)
    raw_value = parse_value(rec.value, rec.amount)
    if not rec.place or not date_iso or raw_value is None:
        logger.debug(
            "json_records:rejected place=%r date=%r value=%r", rec.place, rec.date, rec.value
        )
        return None
    value = round_amount(raw_value)
    if not is_valid_amount(value):
        logger.debug("json_records:rejected reason=amount_out_of_bounds value=%s", value)
        return None

    classification = categorize_merchant(rec.place)
    period = compute_statement_period(date_iso)
    amount_display = rec.amount.strip() if isinstance(rec.amount, str) else ""
    return Transaction(
        place=rec.place,
        amount=amount_display or format_amount(value),
        date=date_iso,
        currency=rec.currency or DEFAULT_CURRENCY,
        value=value,
        date_iso=date_iso,
        category=rec.category or classification.category,
        subcategory=rec.subcategory or classification.subcategory,
        statement_id=rec.statement_id or period.statement_id,
        statement_start=rec.statement_start or period.statement_start,
        statement_end=rec.statement_end or period.statement_end,
        id=rec.id,
    )


def normalize_records(entries: Iterable[Any]) -> list[Transaction]:
    """Normalize every mapping in ``entries``; raise when none survive."""

    normalized: list[Transaction] = []
    rejected = 0
    for entry in entries:
        tx = normalize_record(entry) if isinstance(entry, Mapping) else None
        if tx is None:
            rejected += 1
            continue
        normalized.append(tx)
    logger.info("json_records:normalized valid=%d rejected=%d", len(normalized), rejected)
    if not normalized:
        raise ValueError("No valid transactions found in payload")
    return normalized


__all__ = [
    "IncomingRecord",
    "load_records",
    "normalize_record",
    "normalize_records",
    "parse_date_iso",
    "parse_value",
    "sanitize_json",
]
