"""Conditions module for ide-pageobjects.

Provides the repeat polling engine and locator wait conditions built on it.
"""

from ide_pageobjects.conditions.locators import (
    wait_until_count,
    wait_until_hidden,
    wait_until_interactive,
    wait_until_text,
)
from ide_pageobjects.conditions.repeat import Repeat, RepeatManager, Threshold, repeat

__all__ = [
    "Repeat",
    "RepeatManager",
    "Threshold",
    "repeat",
    "wait_until_count",
    "wait_until_hidden",
    "wait_until_interactive",
    "wait_until_text",
]
