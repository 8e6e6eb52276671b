"""Transaction store backends.

Reconciliation talks to a store through three calls (see
:class:`TransactionStore`): fetch every stored record, PATCH one record, and
bulk-insert new records. Two backends implement it:

- :class:`HttpTransactionStore`: the external REST service
  (``GET /transactions``, ``PATCH /transactions/{id}``,
  ``POST /transactions/bulk``) authenticated with an ``X-API-Key`` header.
- :class:`SqlTransactionStore`: the shared ``db`` library's ``transactions``
  table via SQLAlchemy.

Every I/O failure is raised as :class:`~statement_ingest.errors.StoreError`.
Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any, Protocol

import requests
from db.client import session_scope
from db.models.ledger import LedgerTransaction
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from .config import StoreSettings
from .errors import ConfigurationError, StoreError
from .logging_setup import get_logger
from .normalizers import round_amount, to_decimal

logger = get_logger("statement_ingest.stores")


class TransactionStore(Protocol):
    def fetch_all(self) -> list[dict[str, Any]]: ...

    def bulk_insert(self, records: Sequence[Mapping[str, Any]]) -> Any: ...

    def patch(self, transaction_id: int, data: Mapping[str, Any]) -> Any: ...


# ---------------------------------------------------------------------------
# HTTP backend
# ---------------------------------------------------------------------------


class HttpTransactionStore:
    """Client for the external transaction store.

    ``session`` may be any object with a ``requests.Session``-compatible
    ``request`` method; tests pass a stub.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(
        self, method: str, path: str, *, failure: str, payload: Any = None
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"X-API-Key": self.api_key}
        try:
            resp = self._session.request(
                method, url, headers=headers, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise StoreError(f"{failure}: {e}") from e

        logger.debug("store:http method=%s path=%s status=%d", method, path, resp.status_code)
        if not resp.ok:
            raise StoreError(_error_message(resp, failure), status_code=resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"{failure}: response is not valid JSON") from e

    def fetch_all(self) -> list[dict[str, Any]]:
        body = self._request(
            "GET", "/transactions", failure="Failed to fetch existing transactions"
        )
        if not isinstance(body, list):
            raise StoreError("Failed to fetch existing transactions: expected a JSON array")
        return [dict(item) for item in body if isinstance(item, Mapping)]

    def bulk_insert(self, records: Sequence[Mapping[str, Any]]) -> Any:
        return self._request(
            "POST",
            "/transactions/bulk",
            failure="Failed to save transactions to database",
            payload=[dict(r) for r in records],
        )

    def patch(self, transaction_id: int, data: Mapping[str, Any]) -> Any:
        return self._request(
            "PATCH",
            f"/transactions/{transaction_id}",
            failure="Failed to update existing transaction",
            payload=dict(data),
        )


def _error_message(resp: requests.Response, fallback: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"{fallback} (HTTP {resp.status_code})"
    if isinstance(body, Mapping) and body.get("error"):
        return str(body["error"])
    return f"{fallback} (HTTP {resp.status_code})"


# ---------------------------------------------------------------------------
# SQL backend
# ---------------------------------------------------------------------------

_TEXT_FIELDS = ("place", "amount", "date", "currency", "category", "subcategory")
_DATE_FIELDS = ("date_iso", "statement_id", "statement_start", "statement_end")


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(field: str, raw: Any) -> date | None:
    if raw is None or raw == "":
        return None
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw).strip())
    except ValueError as e:
        raise StoreError(f"invalid {field}: {raw!r}") from e


def _parse_value(raw: Any) -> Decimal:
    value = to_decimal(raw)
    if value is None or not value.is_finite():
        raise StoreError(f"invalid value: {raw!r}")
    return round_amount(value)


def row_to_record(row: LedgerTransaction) -> dict[str, Any]:
    return {
        "id": row.id,
        "place": row.place,
        "amount": row.amount,
        "date": row.date,
        "currency": row.currency,
        "value": float(row.value),
        "date_iso": _iso(row.date_iso),
        "category": row.category,
        "subcategory": row.subcategory,
        "statement_id": _iso(row.statement_id),
        "statement_start": _iso(row.statement_start),
        "statement_end": _iso(row.statement_end),
    }


def _apply_record(row: LedgerTransaction, data: Mapping[str, Any]) -> None:
    for field in _TEXT_FIELDS:
        if field in data and data[field] is not None:
            setattr(row, field, str(data[field]))
    if "value" in data:
        row.value = _parse_value(data["value"])
    for field in _DATE_FIELDS:
        if field in data:
            setattr(row, field, _parse_date(field, data[field]))


class SqlTransactionStore:
    """Transaction store backed by the shared ``transactions`` table."""

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    def fetch_all(self) -> list[dict[str, Any]]:
        try:
            with session_scope(database_url=self.database_url) as session:
                rows = session.scalars(
                    select(LedgerTransaction).order_by(LedgerTransaction.id)
                ).all()
                return [row_to_record(row) for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to fetch existing transactions: {e}") from e

    def bulk_insert(self, records: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        try:
            with session_scope(database_url=self.database_url) as session:
                rows: list[LedgerTransaction] = []
                for record in records:
                    row = LedgerTransaction()
                    _apply_record(row, record)
                    rows.append(row)
                session.add_all(rows)
                session.flush()
                ids = [row.id for row in rows]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to save transactions to database: {e}") from e
        logger.info("store:sql_inserted count=%d", len(ids))
        return {"inserted": len(ids), "ids": ids}

    def patch(self, transaction_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            with session_scope(database_url=self.database_url) as session:
                row = session.get(LedgerTransaction, transaction_id)
                if row is None:
                    raise StoreError(f"transaction {transaction_id} not found", status_code=404)
                _apply_record(row, {k: v for k, v in data.items() if k != "id"})
                session.flush()
                return row_to_record(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update existing transaction: {e}") from e


def open_store(settings: StoreSettings) -> TransactionStore:
    """Build the store described by ``settings``."""

    if settings.kind == "http":
        if not settings.base_url or not settings.api_key:
            raise ConfigurationError("HTTP store requires a base URL and an API key")
        return HttpTransactionStore(settings.base_url, settings.api_key, timeout=settings.timeout)
    if settings.kind == "sql":
        return SqlTransactionStore(settings.database_url)
    raise ConfigurationError(f"unknown store kind: {settings.kind!r}")


__all__ = [
    "HttpTransactionStore",
    "SqlTransactionStore",
    "TransactionStore",
    "open_store",
    "row_to_record",
]
