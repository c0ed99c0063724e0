"""Pytest configuration and shared fixtures for ide-pageobjects tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from ide_pageobjects.conditions.repeat import Repeat


@pytest_asyncio.fixture(autouse=True)
async def abort_pending_repeats() -> AsyncGenerator[None]:
    """Abort repeat tasks left running by a test.

    Runs inside the test's event loop so aborted futures settle before
    the loop is closed.
    """
    yield
    aborted = Repeat.MANAGER.abort_all()
    await asyncio.gather(*(task.execute() for task in aborted), return_exceptions=True)


@pytest.fixture
def mock_locator() -> MagicMock:
    """Create a mock Playwright locator.

    Returns:
        A MagicMock with async reading methods.
    """
    locator = MagicMock()
    locator.is_visible = AsyncMock(return_value=True)
    locator.is_enabled = AsyncMock(return_value=True)
    locator.inner_text = AsyncMock(return_value="")
    locator.count = AsyncMock(return_value=0)
    locator.__str__ = MagicMock(return_value="<Locator .quick-input-widget>")
    return locator
