"""Unit tests for config module."""

import logging
import os
from unittest.mock import patch

import pytest

from multitoken import (
    LedgerConfig, LoggingSink, MultiTokenLedger, RecordingSink, SYSTEM_OPERATOR, get_logger,
)


@pytest.fixture(autouse=True)
def restore_level():
    """Put the multitoken logger's level back after from_config() changes it."""
    logger = get_logger()
    saved = logger.level
    yield logger
    logger.setLevel(saved)


class TestLedgerConfig:
    """Tests for LedgerConfig class."""

    def test_defaults(self) -> None:
        config = LedgerConfig()

        assert config.name == "main"
        assert config.uri == ""
        assert config.owner == SYSTEM_OPERATOR
        assert config.log_level == "INFO"
        assert config.log_events is False

    def test_config_is_immutable(self) -> None:
        config = LedgerConfig()

        with pytest.raises(AttributeError):
            config.name = "other"  # type: ignore

    def test_empty_name_raises(self) -> None:
        with pytest.raises(ValueError, match="name is required"):
            LedgerConfig(name="  ")

    def test_empty_owner_raises(self) -> None:
        with pytest.raises(ValueError, match="owner is required"):
            LedgerConfig(owner="")

    def test_unknown_log_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            LedgerConfig(log_level="LOUD")

    def test_from_env(self) -> None:
        """Test loading config from environment variables."""
        env_vars = {
            "MULTITOKEN_NAME": "assets",
            "MULTITOKEN_URI": "https://token-cdn-domain/{id}.json",
            "MULTITOKEN_OWNER": "0xowner",
            "MULTITOKEN_LOG_LEVEL": "debug",
            "MULTITOKEN_LOG_EVENTS": "yes",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = LedgerConfig.from_env()

        assert config.name == "assets"
        assert config.uri == "https://token-cdn-domain/{id}.json"
        assert config.owner == "0xowner"
        assert config.log_level == "DEBUG"
        assert config.log_events is True

    def test_from_env_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            config = LedgerConfig.from_env()

        assert config == LedgerConfig()

    @pytest.mark.parametrize("raw, expected", [
        ("1", True), ("TRUE", True), ("on", True), ("0", False), ("no", False), ("", False),
    ])
    def test_from_env_log_events_flag(self, raw, expected) -> None:
        with patch.dict(os.environ, {"MULTITOKEN_LOG_EVENTS": raw}, clear=True):
            config = LedgerConfig.from_env()

        assert config.log_events is expected

    def test_from_env_with_overrides(self) -> None:
        """Test from_env with override values."""
        env_vars = {
            "MULTITOKEN_NAME": "env_name",
            "MULTITOKEN_URI": "ipfs://env/{id}",
            "MULTITOKEN_LOG_EVENTS": "1",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = LedgerConfig.from_env(name="override", uri="", log_events=False)

        assert config.name == "override"
        assert config.uri == ""
        assert config.log_events is False

    def test_from_env_invalid_level_raises(self) -> None:
        with (
            patch.dict(os.environ, {"MULTITOKEN_LOG_LEVEL": "chatty"}, clear=True),
            pytest.raises(ValueError, match="Unknown log level"),
        ):
            LedgerConfig.from_env()

    def test_with_updates(self) -> None:
        config = LedgerConfig(name="a")
        updated = config.with_updates(uri="ipfs://x/{id}")

        assert updated.name == "a"
        assert updated.uri == "ipfs://x/{id}"
        assert config.uri == ""

    def test_with_updates_validates(self) -> None:
        with pytest.raises(ValueError, match="owner is required"):
            LedgerConfig().with_updates(owner="")


class TestLedgerFromConfig:
    """Tests for MultiTokenLedger.from_config()."""

    def test_applies_settings(self) -> None:
        config = LedgerConfig(name="assets", uri="ipfs://x/{id}", owner="0xowner")
        ledger = MultiTokenLedger.from_config(config)

        assert ledger.name == "assets"
        assert ledger.owner == "0xowner"
        assert ledger.uri(1) == "ipfs://x/{id}"
        assert ledger._sinks == []

    def test_log_events_adds_logging_sink(self) -> None:
        sink = RecordingSink()
        ledger = MultiTokenLedger.from_config(LedgerConfig(log_events=True), sinks=[sink])

        assert ledger._sinks[0] is sink
        assert isinstance(ledger._sinks[1], LoggingSink)

    def test_owner_recorded_as_mint_operator(self) -> None:
        ledger = MultiTokenLedger.from_config(LedgerConfig(owner="0xowner"))
        result = ledger.mint("0xholder", 1, 1)

        assert result.events[0].operator == "0xowner"

    def test_log_level_applied_to_package_logger(self, restore_level) -> None:
        MultiTokenLedger.from_config(LedgerConfig(log_level="DEBUG"))

        assert restore_level.level == logging.DEBUG
        assert get_logger("ledger").getEffectiveLevel() == logging.DEBUG

    def test_log_level_from_env(self, restore_level) -> None:
        with patch.dict(os.environ, {"MULTITOKEN_LOG_LEVEL": "warning"}, clear=True):
            MultiTokenLedger.from_config(LedgerConfig.from_env())

        assert restore_level.level == logging.WARNING
