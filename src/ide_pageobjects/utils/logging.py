"""Logging configuration for ide-pageobjects.

Provides logging setup that tags every record with the repeat task
running at the time it was emitted.
"""

import logging
from contextvars import ContextVar

from ide_pageobjects.config import get_log_level

# Identifier of the repeat task whose iteration is currently running
repeat_id_context: ContextVar[str] = ContextVar("repeat_id", default="-")


class RepeatIdFilter(logging.Filter):
    """Logging filter that adds a repeat_id attribute to records.

    Records emitted outside of a repeat task get "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Attach the current repeat task id to the record.

        Args:
            record: Log record to process

        Returns:
            Always True (record is always passed through, just modified)
        """
        record.repeat_id = repeat_id_context.get()
        return True


def setup_logging(level: int | None = None, name: str | None = None) -> logging.Logger:
    """Set up logging with repeat task tagging.

    Args:
        level: Logging level (default: from IDE_PAGEOBJECTS_LOG_LEVEL)
        name: Logger name (default: "ide_pageobjects")

    Returns:
        Configured logger instance
    """
    if level is None:
        level = get_log_level()

    logger = logging.getLogger(name or "ide_pageobjects")
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - [%(repeat_id)s] %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(RepeatIdFilter())

    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the ide_pageobjects namespace.

    Args:
        name: Logger name suffix (e.g., "conditions" for "ide_pageobjects.conditions")

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"ide_pageobjects.{name}")
    return logging.getLogger("ide_pageobjects")
