"""Utility modules for ide-pageobjects."""

from ide_pageobjects.utils.logging import RepeatIdFilter, get_logger, repeat_id_context, setup_logging

__all__ = ["RepeatIdFilter", "get_logger", "repeat_id_context", "setup_logging"]
