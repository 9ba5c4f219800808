"""Essential tests for utility modules - Config, Logging and Formatters."""

import logging
import os
from unittest.mock import patch

import pytest

from budget_audit.utils.config import Config
from budget_audit.utils.formatters import (
    format_currency,
    format_number,
    format_percent,
    format_postal_code,
    truncate,
)
from budget_audit.utils.logging import get_logger, setup_logging


class TestConfig:
    """Test cases for configuration utilities."""

    def test_config_default_values(self):
        """Without an env file only the built-in defaults are used."""
        with patch.dict(os.environ, {"CRITICAL_DIFF_THRESHOLD_PCT": "9"}):
            config = Config()

        assert config.get("log_level") == "INFO"
        assert config.get("documents_dir") == "documents"
        assert config["percentage_threshold"] == 0.5
        assert config["absolute_threshold"] == 50.0
        assert config["minor_unit_price_threshold"] == 1000.0
        assert config["marketing_tags"] == ["usar-pontos-agora"]
        assert "log_level" in config
        assert config.get("missing", "fallback") == "fallback"

    def test_config_loads_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(
            "LOG_LEVEL=DEBUG\n"
            "CRITICAL_DIFF_THRESHOLD_PCT=1.5\n"
            "CRITICAL_DIFF_THRESHOLD_ABS=not-a-number\n"
            "WATCHED_MARKETING_TAGS=Usar-Pontos-Agora, VIP ,\n"
        )

        with patch.dict(os.environ, {}, clear=True):
            config = Config(str(env_file))

        assert config["log_level"] == "DEBUG"
        assert config["percentage_threshold"] == 1.5
        assert config["absolute_threshold"] == 50.0
        assert config["marketing_tags"] == ["usar-pontos-agora", "vip"]


class TestLogging:
    """Test cases for logging utilities."""

    def test_setup_logging_debug(self):
        logger = setup_logging("DEBUG")
        assert logger.name == "budget_audit"
        assert logger.level == logging.DEBUG

    def test_setup_logging_default(self):
        logger = setup_logging()
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1

    def test_setup_logging_file(self, tmp_path):
        log_file = tmp_path / "logs" / "audit.log"
        logger = setup_logging("INFO", log_file=str(log_file))

        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert "hello" in log_file.read_text()
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()

    def test_get_logger_nests_under_package(self):
        assert get_logger("budget_audit.comparison.service").name == "budget_audit.comparison.service"
        assert get_logger("tests").name == "budget_audit.tests"


class TestFormatters:
    @pytest.mark.parametrize(
        "value, expected",
        [(1234.56, "R$ 1.234,56"), (0, "R$ 0,00"), (-13, "-R$ 13,00"), (1000000, "R$ 1.000.000,00")],
    )
    def test_format_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_format_number(self):
        assert format_number(30.1, 1) == "30,1"
        assert format_number(-0.001) == "0,00"

    def test_format_percent(self):
        assert format_percent(6.6711) == "+6,67%"
        assert format_percent(-2.5) == "-2,50%"
        assert format_percent(0) == "0,00%"

    def test_format_postal_code(self):
        assert format_postal_code("01310100") == "01310-100"
        assert format_postal_code("123") == "123"

    def test_truncate(self):
        assert truncate("short", 10) == "short"
        assert truncate("a very long product name", 10) == "a very ..."
