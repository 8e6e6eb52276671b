"""Environment-driven configuration for the transaction store.

Recognized variables (a local ``.env`` is loaded by the CLI via
``python-dotenv`` without overriding the real environment):

- ``STATEMENT_STORE_URL``: base URL of the HTTP transaction store. A trailing
  ``/transactions`` is tolerated and removed.
- ``STATEMENT_STORE_API_KEY``: pre-shared key sent as ``X-API-Key``; required
  whenever ``STATEMENT_STORE_URL`` is set.
- ``STATEMENT_STORE_TIMEOUT``: per-request timeout in seconds (default 30).
- ``DATABASE_URL``: SQLAlchemy URL for the local SQL store, used when no HTTP
  store is configured.

The HTTP store wins when both are configured. With neither, loading fails with
:class:`~statement_ingest.errors.ConfigurationError` before any parsing.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from .errors import ConfigurationError

STORE_URL_ENV = "STATEMENT_STORE_URL"
STORE_API_KEY_ENV = "STATEMENT_STORE_API_KEY"
STORE_TIMEOUT_ENV = "STATEMENT_STORE_TIMEOUT"
DATABASE_URL_ENV = "DATABASE_URL"

DEFAULT_TIMEOUT_SECONDS = 30.0

type StoreKind = Literal["http", "sql"]


@dataclass(frozen=True, slots=True)
class StoreSettings:
    kind: StoreKind
    base_url: str | None = None
    api_key: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    database_url: str | None = None


def normalize_base_url(url: str) -> str:
    base = url.strip().rstrip("/")
    if base.endswith("/transactions"):
        base = base[: -len("/transactions")]
    return base


def _parse_timeout(raw: str | None) -> float:
    if raw is None or not raw.strip():
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{STORE_TIMEOUT_ENV} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{STORE_TIMEOUT_ENV} must be positive, got {raw!r}")
    return value


def load_store_settings(env: Mapping[str, str] | None = None) -> StoreSettings:
    """Resolve store settings from ``env`` (defaults to ``os.environ``)."""

    source = os.environ if env is None else env
    url = (source.get(STORE_URL_ENV) or "").strip()
    api_key = (source.get(STORE_API_KEY_ENV) or "").strip()
    database_url = (source.get(DATABASE_URL_ENV) or "").strip()

    if url:
        if not api_key:
            raise ConfigurationError(
                f"{STORE_API_KEY_ENV} is not set; required when {STORE_URL_ENV} is configured"
            )
        return StoreSettings(
            kind="http",
            base_url=normalize_base_url(url),
            api_key=api_key,
            timeout=_parse_timeout(source.get(STORE_TIMEOUT_ENV)),
        )
    if database_url:
        return StoreSettings(kind="sql", database_url=database_url)
    raise ConfigurationError(
        f"No transaction store configured: set {STORE_URL_ENV} and {STORE_API_KEY_ENV}, "
        f"or {DATABASE_URL_ENV}"
    )


__all__ = [
    "DATABASE_URL_ENV",
    "DEFAULT_TIMEOUT_SECONDS",
    "STORE_API_KEY_ENV",
    "STORE_TIMEOUT_ENV",
    "STORE_URL_ENV",
    "StoreSettings",
    "load_store_settings",
    "normalize_base_url",
]
