"""Reconcile freshly parsed transactions against the stored set.

Each new transaction is looked up by its natural key
``(date_iso, place.strip().lower())``:

- no stored match: the transaction is new and will be bulk inserted;
- a match whose value differs by more than one cent, or whose category or
  subcategory differs: the stored record is queued for a PATCH with the new
  fields overlaid (only when the stored record carries an ``id``);
- otherwise: a duplicate, counted and dropped.

``len(new) + len(updates) + duplicate_count`` always equals the number of
submitted transactions.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .logging_setup import get_logger
from .models import PendingUpdate, Reconciliation, Transaction, UploadResult, natural_key
from .normalizers import to_decimal

if TYPE_CHECKING:
    from .stores import TransactionStore

VALUE_TOLERANCE = Decimal("0.01")

MSG_UPDATED = "Existing transactions updated."
MSG_ALL_DUPLICATES = "All transactions are duplicates. No new transactions to save."

logger = get_logger("statement_ingest.reconcile")


def _index_existing(existing: Iterable[Mapping[str, Any]]) -> dict[tuple[str, str], Mapping[str, Any]]:
    # Later records with the same key replace earlier ones.
    index: dict[tuple[str, str], Mapping[str, Any]] = {}
    for record in existing:
        index[natural_key(record.get("date_iso"), record.get("place"))] = record
    return index


def _value_differs(stored: Any, new: Decimal) -> bool:
    stored_value = to_decimal(stored)
    if stored_value is None or not stored_value.is_finite():
        return True
    return abs(stored_value - new) > VALUE_TOLERANCE


def _needs_update(stored: Mapping[str, Any], tx: Transaction) -> bool:
    if _value_differs(stored.get("value"), tx.value):
        return True
    return stored.get("category") != tx.category or stored.get("subcategory") != tx.subcategory


def _stored_id(stored: Mapping[str, Any]) -> int | None:
    raw = stored.get("id")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def reconcile(
    new: Sequence[Transaction], existing: Iterable[Mapping[str, Any]]
) -> Reconciliation:
    """Partition ``new`` into inserts, updates and duplicates against ``existing``."""

    index = _index_existing(existing)
    new_transactions: list[Transaction] = []
    updates: list[PendingUpdate] = []

    for tx in new:
        stored = index.get(tx.natural_key)
        if stored is None:
            new_transactions.append(tx)
            continue
        if not _needs_update(stored, tx):
            continue
        stored_id = _stored_id(stored)
        if stored_id is None:
            logger.debug("reconcile:update_without_id key=%s", tx.natural_key)
            continue
        data = {**stored, **tx.to_json(), "id": stored_id}
        updates.append(PendingUpdate(id=stored_id, data=data))

    duplicate_count = len(new) - len(new_transactions) - len(updates)
    logger.info(
        "reconcile:done total=%d new=%d updates=%d duplicates=%d",
        len(new),
        len(new_transactions),
        len(updates),
        duplicate_count,
    )
    return Reconciliation(
        new_transactions=tuple(new_transactions),
        updates=tuple(updates),
        duplicate_count=duplicate_count,
        total=len(new),
    )


def apply_reconciliation(reconciliation: Reconciliation, store: TransactionStore) -> UploadResult:
    """Write a reconciliation to ``store``: PATCH updates first, then bulk insert.

    When nothing new remains the insert call is skipped entirely. Store
    failures propagate as :class:`~statement_ingest.errors.StoreError`.
    """

    for update in reconciliation.updates:
        store.patch(update.id, dict(update.data))
        logger.debug("reconcile:patched id=%d", update.id)

    updated = len(reconciliation.updates)
    if not reconciliation.new_transactions:
        return UploadResult(
            transactions=[],
            count=0,
            duplicate_count=reconciliation.duplicate_count,
            updated=updated,
            saved=updated > 0,
            message=MSG_UPDATED if updated else MSG_ALL_DUPLICATES,
        )

    payload = [tx.to_json() for tx in reconciliation.new_transactions]
    save_result = store.bulk_insert(payload)
    logger.info("reconcile:inserted count=%d", len(payload))
    return UploadResult(
        transactions=payload,
        count=len(payload),
        duplicate_count=reconciliation.duplicate_count,
        updated=updated,
        saved=True,
        save_result=save_result,
    )


__all__ = [
    "MSG_ALL_DUPLICATES",
    "MSG_UPDATED",
    "VALUE_TOLERANCE",
    "apply_reconciliation",
    "reconcile",
]
