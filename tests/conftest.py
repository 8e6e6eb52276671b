"""Pytest configuration for test isolation.

Three pieces of process-wide state leak between tests unless reset:

- store configuration read from the environment (``STATEMENT_STORE_*`` and
  ``DATABASE_URL``), which a developer's shell or ``.env`` may already set;
- the package logger, which ``configure_logging`` (run by every CLI
  invocation) switches to ``propagate=False`` and marks as configured, hiding
  records from ``caplog``;
- the shared SQLAlchemy engine in ``db.client``, which is bound to the first
  database URL it sees.

An autouse fixture resets all three around each test.
"""

from __future__ import annotations

import logging

import pytest
from db.client import dispose_engine

from statement_ingest import logging_setup

_STORE_ENV_VARS = (
    "STATEMENT_STORE_URL",
    "STATEMENT_STORE_API_KEY",
    "STATEMENT_STORE_TIMEOUT",
    "DATABASE_URL",
    "STATEMENT_INGEST_LOG_LEVEL",
)


def _reset_package_logger() -> None:
    logger = logging.getLogger("statement_ingest")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture(autouse=True)
def _isolate_process_state(monkeypatch: pytest.MonkeyPatch):
    for name in _STORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    # CliRunner tests must not pick up a developer's local .env.
    monkeypatch.setattr("statement_ingest.cli.load_dotenv", lambda **_: False)
    _reset_package_logger()
    yield
    _reset_package_logger()
    dispose_engine()
