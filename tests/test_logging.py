"""Unit tests for logging module."""

import json
import logging

import pytest

from multitoken import MultiTokenLedger, configure_logging, get_logger
from multitoken.logging import LOGGER_NAME, JsonFormatter

from tests.helpers import TOKEN_HOLDER, TOKEN_ID


@pytest.fixture
def restore_logger():
    """Undo configure_logging() so later caplog-based tests still capture."""
    logger = logging.getLogger(LOGGER_NAME)
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield logger
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]


class TestLogging:

    def test_get_logger_names(self) -> None:
        assert get_logger().name == "multitoken"
        assert get_logger("ledger").name == "multitoken.ledger"

    def test_configure_logging(self, restore_logger) -> None:
        logger = configure_logging("DEBUG")

        assert logger is restore_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_reconfigure_replaces_handler(self, restore_logger) -> None:
        configure_logging(logging.INFO)
        logger = configure_logging(logging.WARNING, json_format=True)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_json_output(self, restore_logger, capsys) -> None:
        configure_logging(logging.INFO, json_format=True)
        get_logger("ledger").info("hello")

        out = capsys.readouterr().out
        assert '"level": "INFO"' in out
        assert '"name": "multitoken.ledger"' in out
        assert '"message": "hello"' in out

    def test_json_lines_parse_with_quoted_messages(self, restore_logger, capsys) -> None:
        configure_logging(logging.DEBUG, json_format=True)
        ledger = MultiTokenLedger(name='quote"d')
        ledger.set_uri('ipfs://"x"/{id}', ids=[1])
        ledger.mint(TOKEN_HOLDER, TOKEN_ID, 1)

        lines = capsys.readouterr().out.strip().splitlines()
        records = [json.loads(line) for line in lines]
        assert len(records) == 2
        assert records[0]["message"].startswith('[quote"d] set_uri')
        assert "mint applied" in records[1]["message"]
        assert all(r["level"] == "DEBUG" for r in records)


class TestLedgerLogging:
    """The ledger logs rejections at INFO and commits at DEBUG."""

    def test_rejection_logged(self, ledger, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="multitoken"):
            ledger.burn(TOKEN_HOLDER, TOKEN_ID, 1)

        assert "[test] burn rejected: ERC1155: burn amount exceeds balance" in caplog.text

    def test_commit_logged_at_debug(self, ledger, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="multitoken"):
            ledger.mint(TOKEN_HOLDER, TOKEN_ID, 1)

        records = [r for r in caplog.records if r.name == "multitoken.ledger"]
        assert records and records[0].levelno == logging.DEBUG
        assert "mint applied" in records[0].getMessage()
