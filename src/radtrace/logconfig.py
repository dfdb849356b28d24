"""Logging setup for scripts.

Library modules only create module loggers; handlers are attached here by
the entry points.
"""

import logging
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    name: str = "src.radtrace",
    level: int = logging.INFO,
    log_format: str = DEFAULT_FORMAT,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure a named logger with a stream handler.

    Existing handlers on the logger are removed and propagation is turned
    off, so calling this twice does not duplicate output.

    Args:
        name: Logger name. The default covers every module of the package.
        level: Logging level.
        log_format: Format string for all handlers.
        log_file: Optional file that receives the same records.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False

    return logger
