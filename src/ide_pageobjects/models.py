"""Data models and error types for ide-pageobjects.

This module defines the options accepted by the repeat engine, the
structured loop result used for explicit loop signaling, and the
exceptions raised when a repeat task fails.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class RepeatOptions(BaseModel):
    """Options for a repeat task.

    Attributes:
        ignore_errors: Exception classes swallowed by the loop. An iteration
            raising one of them counts as an unsuccessful iteration.
        timeout: Time budget in milliseconds. None loops until the task is
            done or aborted (or falls back to Repeat.DEFAULT_TIMEOUT),
            0 performs exactly one iteration.
        threshold: Do not finish immediately. Wait until the poll function
            keeps reporting success for this many milliseconds.
        message: Error message used when the task is unsuccessful. Either a
            string or a function (sync or async) producing one.
        id: Task identifier used in logs and error messages.
        ignore_loop_error: With timeout=0, resolve to None instead of raising
            RepeatUnsuccessfulError when the single iteration fails.
    """

    ignore_errors: list[type[BaseException]] = []
    timeout: float | None = Field(default=None, ge=0)
    threshold: float | None = Field(default=None, ge=0)
    message: str | Callable[[], str | Awaitable[str]] | None = None
    id: str | None = None
    ignore_loop_error: bool = False


class LoopStatus(str, Enum):
    """Explicit loop signal returned inside a LoopResult."""

    DONE = "done"
    UNDONE = "undone"


@dataclass(frozen=True, kw_only=True)
class LoopResult[T]:
    """Result of a single iteration with explicit loop signaling.

    Returning a LoopResult from the poll function switches the task into
    explicit mode: the task finishes when loop_status is DONE, regardless
    of the truthiness of value.

    Attributes:
        value: Value returned by the task when it finishes
        loop_status: Whether the loop is done
        delay: Minimum time in milliseconds before the next iteration
    """

    value: T | None = None
    loop_status: LoopStatus
    delay: float | None = None

    @classmethod
    def done(cls, value: T | None = None) -> LoopResult[T]:
        """Shortcut for a finished iteration."""
        return cls(value=value, loop_status=LoopStatus.DONE)

    @classmethod
    def undone(cls, delay: float | None = None) -> LoopResult[T]:
        """Shortcut for an unfinished iteration, optionally delaying the next one."""
        return cls(loop_status=LoopStatus.UNDONE, delay=delay)


class RepeatError(Exception):
    """Generic repeat task failure.

    Raised when the poll function breaks the loop protocol, for example by
    mixing plain values and LoopResult objects within one task.
    """


class RepeatExitError(Exception):
    """Signal used to abort a repeat task.

    Tasks aborted without a value, including every task cancelled by
    RepeatManager.abort_all(), fail with this error.
    """


class RepeatUnsuccessfulError(TimeoutError):
    """Repeat task did not finish within its time budget.

    Attributes:
        message: Human-readable error message
        repeat_id: Identifier of the failed task
        timeout: Timeout of the failed task in milliseconds
    """

    def __init__(
        self,
        message: str,
        repeat_id: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message
            repeat_id: Identifier of the failed task
            timeout: Timeout of the failed task in milliseconds
        """
        self.message = message
        self.repeat_id = repeat_id
        self.timeout = timeout
        super().__init__(message)
