"""Tests for script logging setup."""

import logging

import pytest


@pytest.fixture
def logger_name():
    name = "src.radtrace.test_logconfig"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_configures_stream_handler(self, logger_name):
        """Test one formatted stream handler at the requested level."""
        from src.radtrace.logconfig import DEFAULT_FORMAT, setup_logging

        logger = setup_logging(logger_name, level=logging.DEBUG)

        assert logger.name == logger_name
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert logger.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_repeated_setup_does_not_duplicate(self, logger_name):
        """Test calling setup twice keeps a single handler."""
        from src.radtrace.logconfig import setup_logging

        setup_logging(logger_name)
        logger = setup_logging(logger_name, level=logging.WARNING)

        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING

    def test_log_file(self, logger_name, tmp_path):
        """Test records also reach the log file."""
        from src.radtrace.logconfig import setup_logging

        log_file = tmp_path / "run.log"
        logger = setup_logging(logger_name, log_format="%(levelname)s %(message)s", log_file=log_file)
        logger.info("rendering 4x4")
        for handler in logger.handlers:
            handler.flush()

        assert len(logger.handlers) == 2
        assert log_file.read_text().strip() == "INFO rendering 4x4"

    def test_child_loggers_use_handlers(self, logger_name):
        """Test module loggers below the configured name are covered."""
        from src.radtrace.logconfig import setup_logging

        logger = setup_logging(logger_name)
        child = logging.getLogger(f"{logger_name}.scene")
        assert child.getEffectiveLevel() == logging.INFO
        assert logger.handlers


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
