"""Public pipeline entry points for ``statement_ingest``.

- :func:`parse_statement`: PDF to transactions, no persistence.
- :func:`upload_statement`: PDF to transactions, reconciled and saved.
- :func:`import_records`: JSON export to transactions, reconciled and saved.

Store configuration is resolved before any parsing so a misconfigured
deployment fails fast. Once transactions have been extracted, any store
failure is raised as :class:`~statement_ingest.errors.PersistenceError`
carrying those transactions.
"""

from __future__ import annotations

from collections.abc import Sequence

from .config import StoreSettings, load_store_settings
from .errors import PersistenceError, StoreError
from .ingest.dispatch import ExtractionResult, extract_transactions
from .ingest.json_records import load_records, normalize_records
from .ingest.pdf_text import PdfSource, read_statement_lines
from .logging_setup import get_logger
from .models import Transaction, UploadResult
from .reconcile import apply_reconciliation, reconcile
from .stores import TransactionStore, open_store

NO_TRANSACTIONS_MESSAGE = "No transactions found in statement."

logger = get_logger("statement_ingest.api")


def resolve_store(
    store: TransactionStore | None = None, settings: StoreSettings | None = None
) -> TransactionStore:
    """Return ``store`` or build one from ``settings`` (or the environment)."""

    if store is not None:
        return store
    return open_store(settings or load_store_settings())


def parse_statement(source: PdfSource) -> ExtractionResult:
    """Decode a statement PDF and extract its transactions.

    Raises :class:`~statement_ingest.errors.StatementDecodeError` when the PDF
    cannot be read. A statement no parser recognizes is not an error: the
    result has ``parser is None`` and diagnostics are logged.
    """

    lines = read_statement_lines(source)
    return extract_transactions(lines)


def persist_transactions(
    transactions: Sequence[Transaction], store: TransactionStore
) -> UploadResult:
    """Reconcile ``transactions`` against ``store`` and write the outcome."""

    try:
        existing = store.fetch_all()
        reconciliation = reconcile(transactions, existing)
        return apply_reconciliation(reconciliation, store)
    except StoreError as e:
        logger.error("api:persist_failed count=%d error=%s", len(transactions), e)
        raise PersistenceError(transactions, cause=str(e)) from e


def upload_statement(
    source: PdfSource,
    *,
    store: TransactionStore | None = None,
    settings: StoreSettings | None = None,
) -> UploadResult:
    """Parse a statement PDF and save its new or changed transactions."""

    target = resolve_store(store, settings)
    extraction = parse_statement(source)
    if not extraction.transactions:
        logger.warning("api:no_transactions lines=%d", extraction.line_count)
        return UploadResult(count=0, saved=False, message=NO_TRANSACTIONS_MESSAGE)

    logger.info("api:extracted parser=%s count=%d", extraction.parser, extraction.count)
    return persist_transactions(extraction.transactions, target)


def import_records(
    payload: str | bytes,
    *,
    store: TransactionStore | None = None,
    settings: StoreSettings | None = None,
) -> UploadResult:
    """Normalize a JSON export and save its new or changed transactions.

    Raises ``ValueError`` when the payload is not JSON, is empty, or holds no
    usable entry.
    """

    target = resolve_store(store, settings)
    transactions = normalize_records(load_records(payload))
    return persist_transactions(transactions, target)


__all__ = [
    "NO_TRANSACTIONS_MESSAGE",
    "import_records",
    "parse_statement",
    "persist_transactions",
    "resolve_store",
    "upload_statement",
]
