from __future__ import annotations

import pytest

from statement_ingest.models import StatementPeriod
from statement_ingest.statement_period import compute_statement_period


@pytest.mark.parametrize(
    "date_iso, start, end",
    [
        ("2025-09-26", "2025-08-27", "2025-09-26"),
        ("2025-09-27", "2025-09-27", "2025-10-26"),
        ("2025-09-01", "2025-08-27", "2025-09-26"),
        ("2025-12-30", "2025-12-27", "2026-01-26"),
        ("2026-01-05", "2025-12-27", "2026-01-26"),
        ("2024-02-29", "2024-02-27", "2024-03-26"),
        ("2024-02-26", "2024-01-27", "2024-02-26"),
    ],
)
def test_period_closes_on_the_26th(date_iso: str, start: str, end: str):
    period = compute_statement_period(date_iso)
    assert period == StatementPeriod(statement_id=end, statement_start=start, statement_end=end)


@pytest.mark.parametrize("date_iso", [None, "", "2025-02-30", "not-a-date", "29.08.25"])
def test_unparseable_dates_give_empty_period(date_iso):
    assert compute_statement_period(date_iso) == StatementPeriod(None, None, None)
