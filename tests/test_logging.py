"""
Tests for logging configuration.
"""

import logging

import pytest

from cloudkeeper.core.logging import get_logger, level_for, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:
    """Tests for setup_logging and level_for."""

    @pytest.mark.parametrize("verbose, debug, expected", [
        (False, False, logging.WARNING),
        (True, False, logging.INFO),
        (False, True, logging.DEBUG),
    ])
    def test_level_for(self, verbose, debug, expected):
        """-v shows progress, warnings always show."""
        assert level_for(verbose=verbose, debug=debug) == expected

    def test_log_file(self, tmp_path, restore_root_logger):
        """Messages at or above the level reach the log file."""
        log_file = tmp_path / "run.log"
        setup_logging(level="INFO", log_file=str(log_file))

        logger = get_logger("cloudkeeper.test")
        logger.info("Deregistering AMI: ami-123")
        logger.debug("hidden")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "Deregistering AMI: ami-123" in content
        assert "hidden" not in content

    def test_boto_noise_reduced(self, restore_root_logger):
        """Library loggers stay at WARNING even in debug mode."""
        setup_logging(level=logging.DEBUG)
        assert logging.getLogger("botocore").level == logging.WARNING
