"""ide-pageobjects: page-object helpers for driving an IDE UI with Playwright."""

from ide_pageobjects.conditions.repeat import Repeat, RepeatManager, Threshold, repeat
from ide_pageobjects.models import (
    LoopResult,
    LoopStatus,
    RepeatError,
    RepeatExitError,
    RepeatOptions,
    RepeatUnsuccessfulError,
)

__all__ = [
    "LoopResult",
    "LoopStatus",
    "Repeat",
    "RepeatError",
    "RepeatExitError",
    "RepeatManager",
    "RepeatOptions",
    "RepeatUnsuccessfulError",
    "Threshold",
    "repeat",
]
