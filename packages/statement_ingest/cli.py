"""CLI for the ``statement_ingest`` package.

Exposes callable command handlers (``cmd_parse``, ``cmd_upload``, ...) and a
Typer console interface over them. The root callback loads a local ``.env``
with ``python-dotenv`` (never overriding the real environment) and configures
logging before any command runs. Business logic lives in
``statement_ingest.api``.

Handlers print JSON to stdout. Failures print ``Error: ...`` to stderr and
return exit status 1; a persistence failure additionally prints the error
payload (with the extracted transactions) to stdout so the parse work is not
lost.
"""

from __future__ import annotations

import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .logging_setup import configure_logging


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _read_input(path: str) -> bytes | None:
    """Read ``path`` or print a friendly error and return ``None``."""

    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        print(f"Error: File not found: {path}", file=sys.stderr)
    except PermissionError:
        print(f"Error: Permission denied: {path}", file=sys.stderr)
    except IsADirectoryError:
        print(f"Error: Not a file: {path}", file=sys.stderr)
    return None


def _store_settings(database_url: str | None):
    """Settings from ``--database-url`` when given, else from the environment."""

    from .config import StoreSettings, load_store_settings

    if database_url:
        return StoreSettings(kind="sql", database_url=database_url)
    return load_store_settings()


def cmd_parse(pdf_path: str) -> int:
    """Extract transactions from a statement PDF and print them; nothing is saved."""

    from .api import parse_statement
    from .errors import StatementDecodeError

    data = _read_input(pdf_path)
    if data is None:
        return 1
    try:
        result = parse_statement(data)
    except StatementDecodeError as e:
        print(f"Error: Failed to parse PDF: {e}", file=sys.stderr)
        return 1

    _emit_json(
        {
            "parser": result.parser,
            "count": result.count,
            "transactions": [tx.to_json() for tx in result.transactions],
        }
    )
    return 0


def cmd_upload(pdf_path: str, *, database_url: str | None = None) -> int:
    """Parse a statement PDF, reconcile against the store, and save.

    The store is resolved first (``--database-url``, else ``STATEMENT_STORE_URL``
    plus ``STATEMENT_STORE_API_KEY``, else ``DATABASE_URL``); a missing
    configuration fails before the PDF is read.
    """

    from .api import upload_statement
    from .errors import ConfigurationError, PersistenceError, StatementDecodeError

    try:
        settings = _store_settings(database_url)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    data = _read_input(pdf_path)
    if data is None:
        return 1

    try:
        result = upload_statement(data, settings=settings)
    except StatementDecodeError as e:
        print(f"Error: Failed to parse PDF: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        _emit_json(e.to_payload())
        return 1

    _emit_json(result.to_payload())
    return 0


def cmd_import_json(json_path: str, *, database_url: str | None = None) -> int:
    """Bulk re-import a JSON export of transactions."""

    from .api import import_records
    from .errors import ConfigurationError, PersistenceError

    try:
        settings = _store_settings(database_url)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    data = _read_input(json_path)
    if data is None:
        return 1

    try:
        result = import_records(data, settings=settings)
    except ValueError as e:
        print(f"Error: Failed to process JSON payload: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"Error: {e}", file=sys.stderr)
        _emit_json(e.to_payload())
        return 1

    _emit_json(result.to_payload())
    return 0


def cmd_classify(description: str) -> int:
    """Print ``<category>\\t<subcategory>`` for a merchant description."""

    from .classification import categorize_merchant

    category, subcategory = categorize_merchant(description)
    print(f"{category}\t{subcategory}")
    return 0


def cmd_period(date_iso: str) -> int:
    from .statement_period import compute_statement_period

    period = compute_statement_period(date_iso)
    if period.statement_id is None:
        print(f"Error: Invalid date (expected YYYY-MM-DD): {date_iso}", file=sys.stderr)
        return 1
    _emit_json(asdict(period))
    return 0


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create the ``transactions`` table for the SQL store."""

    from db.client import create_schema
    from sqlalchemy.exc import SQLAlchemyError

    try:
        create_schema(database_url=database_url)
    except (RuntimeError, SQLAlchemyError) as e:
        print(f"Error: failed to create schema: {e}", file=sys.stderr)
        return 1
    print("Schema ready.")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Extract, classify and reconcile transactions from bank statement PDFs. "
        "Loads store settings from a local .env before running."
    ),
)

# Module-level option objects to satisfy ruff B008 (no calls in parameter defaults).
PDF_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--pdf-path",
    help="Path to a statement PDF",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
JSON_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--json-path",
    help="Path to a JSON export (array or {'transactions': [...]})",
    dir_okay=False,
    file_okay=True,
    exists=False,
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    ...,
    "--database-url",
    help="Use the SQL store at this URL (overrides STATEMENT_STORE_URL and DATABASE_URL).",
)


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("parse")
def parse_cmd(pdf_path: Annotated[Path, PDF_PATH_OPTION]) -> None:
    """Print the transactions extracted from a statement PDF."""

    _exit(cmd_parse(str(pdf_path)))


@app.command("upload")
def upload_cmd(
    pdf_path: Annotated[Path, PDF_PATH_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Parse a statement PDF and save new or changed transactions."""

    _exit(cmd_upload(str(pdf_path), database_url=database_url))


@app.command("import-json")
def import_json_cmd(
    json_path: Annotated[Path, JSON_PATH_OPTION],
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Re-import a JSON export of transactions."""

    _exit(cmd_import_json(str(json_path), database_url=database_url))


@app.command("classify")
def classify_cmd(description: str) -> None:
    """Print the category and subcategory for a merchant description."""

    _exit(cmd_classify(description))


@app.command("period")
def period_cmd(date_iso: str) -> None:
    """Print the statement period enclosing a YYYY-MM-DD date."""

    _exit(cmd_period(date_iso))


@app.command("init-db")
def init_db_cmd(database_url: Annotated[str | None, DATABASE_URL_OPTION] = None) -> None:
    """Create the SQL store schema (uses DATABASE_URL when no URL is given)."""

    _exit(cmd_init_db(database_url=database_url))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: str | None = typer.Option(
        None, help="Logging level (falls back to STATEMENT_INGEST_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
