"""
Tests for logging setup.
"""

import logging

from fibscope.logger import (
    _parse_size,
    get_analysis_adapter,
    setup_logger,
)


class TestLogger:
    """Test logger construction."""

    def test_console_only_by_default(self):
        logger = setup_logger("fibscope.test.console", level="INFO")

        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_file_output(self, temp_dir):
        log_file = temp_dir / "logs" / "fibscope.log"
        logger = setup_logger(
            "fibscope.test.file", level="DEBUG", log_file=str(log_file), console_output=False
        )

        adapter = get_analysis_adapter(logger, fingerprint="abcdef0123456789")
        adapter.info("analysis started")
        for handler in logger.handlers:
            handler.flush()

        content = log_file.read_text()
        assert "analysis started" in content
        assert "[abcdef012345]" in content

    def test_handlers_are_replaced(self):
        setup_logger("fibscope.test.repeat")
        logger = setup_logger("fibscope.test.repeat")

        assert len(logger.handlers) == 1

    def test_parse_size(self):
        assert _parse_size("10MB") == 10 * 1024 * 1024
        assert _parse_size("1GB") == 1024 * 1024 * 1024
        assert _parse_size("512KB") == 512 * 1024
        assert _parse_size("100B") == 100
        assert _parse_size("2048") == 2048
        assert _parse_size("lots") == 10 * 1024 * 1024
