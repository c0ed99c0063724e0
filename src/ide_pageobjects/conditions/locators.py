"""Wait conditions for Playwright locators.

Page objects use these helpers to wait for IDE widgets (input boxes,
dialogs, quick picks, extension lists) to settle before interacting
with them. Every helper is a thin layer over repeat().
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from playwright.async_api import Error as PlaywrightError

from ide_pageobjects.conditions.repeat import repeat
from ide_pageobjects.models import LoopResult

if TYPE_CHECKING:
    from playwright.async_api import Locator

logger = logging.getLogger(__name__)

# Configuration constants
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_HIDDEN_THRESHOLD_MS = 500
DEFAULT_COUNT_POLL_DELAY_MS = 150

# Raised by Playwright when an element is detached or re-rendered mid-read
STALE_ELEMENT_ERRORS: tuple[type[BaseException], ...] = (PlaywrightError,)


async def wait_until_hidden(
    locator: Locator,
    timeout: float = DEFAULT_TIMEOUT_MS,
    threshold: float = DEFAULT_HIDDEN_THRESHOLD_MS,
) -> bool:
    """Wait until the element is hidden and stays hidden.

    Widgets such as the quick input box flicker while VS Code re-renders
    them, so a single invisible read is not trusted.

    Args:
        locator: Element to watch
        timeout: Maximum time to wait in milliseconds
        threshold: How long the element must stay hidden in milliseconds

    Returns:
        True once the element stayed hidden for `threshold` ms

    Raises:
        RepeatUnsuccessfulError: If the element is still visible after `timeout`
    """

    async def is_hidden() -> bool:
        return not await locator.is_visible()

    return await repeat(
        is_hidden,
        timeout=timeout,
        threshold=threshold,
        ignore_errors=list(STALE_ELEMENT_ERRORS),
        message=f"Timed out waiting for {locator} to be hidden.",
    )


async def wait_until_interactive(locator: Locator, timeout: float = DEFAULT_TIMEOUT_MS) -> Locator:
    """Wait until the element is visible and enabled.

    Returns:
        The same locator
    """

    async def interactive_locator() -> Locator | None:
        if await locator.is_visible() and await locator.is_enabled():
            return locator
        return None

    return await repeat(
        interactive_locator,
        timeout=timeout,
        ignore_errors=list(STALE_ELEMENT_ERRORS),
        message=f"Timed out waiting for {locator} to be interactive.",
    )


async def wait_until_text(locator: Locator, text: str, timeout: float = DEFAULT_TIMEOUT_MS) -> str:
    """Wait until the element's text equals `text`.

    Uses explicit loop signaling because the expected text may be empty,
    which would never count as done in implicit mode.

    Args:
        locator: Element to read
        text: Expected text
        timeout: Maximum time to wait in milliseconds

    Returns:
        The element text

    Raises:
        RepeatUnsuccessfulError: With the last observed text if it never matched
    """

    async def read_text() -> LoopResult[str]:
        current = await locator.inner_text()
        if current == text:
            return LoopResult.done(current)
        return LoopResult.undone()

    async def describe_failure() -> str:
        try:
            current = await locator.inner_text()
        except PlaywrightError as e:
            logger.debug("Could not read text of %s: %s", locator, e)
            current = "<unavailable>"
        return f'Timed out setting text to "{text}". Current text: "{current}"'

    return await repeat(
        read_text,
        timeout=timeout,
        ignore_errors=list(STALE_ELEMENT_ERRORS),
        message=describe_failure,
    )


async def wait_until_count(
    locator: Locator,
    count: int,
    timeout: float = DEFAULT_TIMEOUT_MS,
    delay: float = DEFAULT_COUNT_POLL_DELAY_MS,
) -> int:
    """Wait until the locator matches exactly `count` elements.

    Lists such as the extensions view load lazily and query the
    marketplace on every render, so reads are spaced by `delay` ms.

    Args:
        locator: Elements to count
        count: Expected number of elements
        timeout: Maximum time to wait in milliseconds
        delay: Minimum time between reads in milliseconds

    Returns:
        The number of matched elements
    """

    async def read_count() -> LoopResult[int]:
        current = await locator.count()
        if current == count:
            return LoopResult.done(current)
        return LoopResult.undone(delay=delay)

    return await repeat(
        read_count,
        timeout=timeout,
        ignore_errors=list(STALE_ELEMENT_ERRORS),
        message=f"Timed out waiting for {count} element(s) matching {locator}.",
    )
