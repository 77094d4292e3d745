"""Tests for logging helpers."""

import logging
import os
from unittest.mock import patch

import structlog

from game_catalog_sync.config import get_settings
from game_catalog_sync.logger import get_logger, setup_logging, sync_context


class TestLogger:
    """Tests for logger setup and context binding."""

    def test_sync_context_binds_and_unbinds(self) -> None:
        """Test that context values exist only inside the block."""
        with sync_context(catalog_url="https://ok.test/c.json"):
            assert structlog.contextvars.get_contextvars()["catalog_url"] == (
                "https://ok.test/c.json"
            )

        assert "catalog_url" not in structlog.contextvars.get_contextvars()

    def test_get_logger_binds_component(self) -> None:
        """Test that initial context is bound to the logger."""
        with structlog.testing.capture_logs() as logs:
            get_logger(__name__, component="fetcher").warning("hello")

        assert logs == [{"component": "fetcher", "event": "hello", "log_level": "warning"}]

    def test_noisy_loggers_quieted(self) -> None:
        """Test that HTTP client loggers are raised to WARNING."""
        with patch.dict(os.environ, {"LOG_LEVEL": "INFO"}):
            get_settings.cache_clear()
            setup_logging()

        assert logging.getLogger("httpx").level == logging.WARNING
