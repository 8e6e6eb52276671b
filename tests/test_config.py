from __future__ import annotations

import pytest

from statement_ingest.config import (
    DEFAULT_TIMEOUT_SECONDS,
    StoreSettings,
    load_store_settings,
    normalize_base_url,
)
from statement_ingest.errors import ConfigurationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("https://ledger.example", "https://ledger.example"),
        ("https://ledger.example/", "https://ledger.example"),
        ("https://ledger.example/api/transactions", "https://ledger.example/api"),
        (" https://ledger.example/transactions/ ", "https://ledger.example"),
    ],
)
def test_normalize_base_url(raw: str, expected: str):
    assert normalize_base_url(raw) == expected


def test_http_store_wins_over_database_url():
    settings = load_store_settings(
        {
            "STATEMENT_STORE_URL": "https://ledger.example/transactions",
            "STATEMENT_STORE_API_KEY": "secret",
            "STATEMENT_STORE_TIMEOUT": "12.5",
            "DATABASE_URL": "sqlite+pysqlite:///ledger.db",
        }
    )
    assert settings == StoreSettings(
        kind="http", base_url="https://ledger.example", api_key="secret", timeout=12.5
    )


def test_sql_store_from_database_url():
    settings = load_store_settings({"DATABASE_URL": "sqlite+pysqlite:///ledger.db"})
    assert settings.kind == "sql"
    assert settings.database_url == "sqlite+pysqlite:///ledger.db"
    assert settings.timeout == DEFAULT_TIMEOUT_SECONDS


def test_reads_process_environment_by_default(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///env.db")
    assert load_store_settings().database_url == "sqlite+pysqlite:///env.db"


@pytest.mark.parametrize(
    "env, message",
    [
        ({}, "No transaction store configured"),
        ({"STATEMENT_STORE_URL": "https://x"}, "STATEMENT_STORE_API_KEY is not set"),
        (
            {"STATEMENT_STORE_URL": "https://x", "STATEMENT_STORE_API_KEY": "k", "STATEMENT_STORE_TIMEOUT": "soon"},
            "must be a number",
        ),
        (
            {"STATEMENT_STORE_URL": "https://x", "STATEMENT_STORE_API_KEY": "k", "STATEMENT_STORE_TIMEOUT": "0"},
            "must be positive",
        ),
    ],
)
def test_misconfiguration_raises(env: dict[str, str], message: str):
    with pytest.raises(ConfigurationError, match=message):
        load_store_settings(env)
