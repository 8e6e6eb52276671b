"""Pipeline-level exceptions.

Parser-internal anomalies (a single malformed line, an out-of-range amount)
never raise; they are logged and the line is dropped. The exceptions below
cover the failures that abort an upload.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Transaction


class StatementIngestError(RuntimeError):
    """Base class for errors surfaced by the ingestion pipeline."""


class ConfigurationError(StatementIngestError):
    """No usable transaction store is configured (raised before parsing)."""


class StatementDecodeError(StatementIngestError):
    """The PDF could not be opened or its text could not be extracted."""


class StoreError(StatementIngestError):
    """A transaction store call failed (fetch, patch or bulk insert)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(StatementIngestError):
    """Extraction succeeded but saving the transactions failed.

    ``transactions`` carries every extracted record so callers can show or
    retry them without parsing the statement again.
    """

    message = "Transactions extracted but failed to save to database"

    def __init__(self, transactions: Sequence[Transaction], *, cause: str | None = None) -> None:
        detail = f"{self.message}: {cause}" if cause else self.message
        super().__init__(detail)
        self.transactions = tuple(transactions)
        self.cause = cause

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "transactions": [tx.to_json() for tx in self.transactions],
            "count": len(self.transactions),
        }


__all__ = [
    "ConfigurationError",
    "PersistenceError",
    "StatementDecodeError",
    "StatementIngestError",
    "StoreError",
]
