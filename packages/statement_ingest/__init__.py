"""Public interface for the ``statement_ingest`` package.

This module re-exports the pipeline entry points and the public models so
callers (the CLI, a host web app) import from one place. There is no runtime
logic here, only symbol re-exports.
"""

from .api import (
    import_records,
    parse_statement,
    persist_transactions,
    upload_statement,
)
from .classification import categorize_merchant
from .errors import (
    ConfigurationError,
    PersistenceError,
    StatementDecodeError,
    StatementIngestError,
    StoreError,
)
from .ingest.dispatch import ExtractionResult, extract_transactions
from .ingest.pdf_text import Fragment, assemble_lines
from .models import Classification, StatementPeriod, Transaction, UploadResult
from .reconcile import reconcile
from .statement_period import compute_statement_period

__all__ = [
    # API
    "import_records",
    "parse_statement",
    "persist_transactions",
    "upload_statement",
    # Pipeline stages
    "assemble_lines",
    "categorize_merchant",
    "compute_statement_period",
    "extract_transactions",
    "reconcile",
    # Models / types
    "Classification",
    "ExtractionResult",
    "Fragment",
    "StatementPeriod",
    "Transaction",
    "UploadResult",
    # Errors
    "ConfigurationError",
    "PersistenceError",
    "StatementDecodeError",
    "StatementIngestError",
    "StoreError",
]
