from __future__ import annotations

import io
import logging

import pytest
from typer.testing import CliRunner

from statement_ingest import logging_setup
from statement_ingest.cli import app


@pytest.mark.parametrize(
    "level, expected",
    [
        (logging.DEBUG, logging.DEBUG),
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        ("15", 15),
        (None, logging.INFO),
        ("verbose", logging.INFO),
    ],
)
def test_parse_level(level, expected: int):
    assert logging_setup._parse_level(level) == expected


@pytest.mark.parametrize("env_val", ["verbose", "Loud", "VERBOSE", "  "])
def test_unknown_env_level_falls_back_to_info(monkeypatch: pytest.MonkeyPatch, env_val: str):
    monkeypatch.setenv("STATEMENT_INGEST_LOG_LEVEL", env_val)
    assert logging_setup._parse_level(None) == logging.INFO
    assert logging_setup._parse_level("nonsense") == logging.INFO


def test_env_level_used_when_argument_missing(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_INGEST_LOG_LEVEL", "error")
    assert logging_setup._parse_level(None) == logging.ERROR


def test_configure_logging_attaches_one_handler():
    stream = io.StringIO()
    logging_setup.configure_logging("DEBUG", stream=stream)
    logging_setup.configure_logging("ERROR", stream=stream)

    logger = logging.getLogger("statement_ingest")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert logger.propagate is False

    logging_setup.get_logger("statement_ingest.test").debug("test:event key=%s", "v")
    assert "test:event key=v" in stream.getvalue()


def test_cli_runs_with_unknown_env_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STATEMENT_INGEST_LOG_LEVEL", "verbose")

    result = CliRunner().invoke(app, ["classify", "COUNTDOWN PONSONBY"])

    assert result.exit_code == 0
    assert result.stdout == "Groceries\tSupermarkets\n"
