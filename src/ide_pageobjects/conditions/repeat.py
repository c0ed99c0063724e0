"""Polling engine used by page objects to wait for UI state.

Repeat evaluates a poll function until it reports success, the time
budget runs out, an unignored error is raised, or the task is aborted.

Differences from a plain wait loop:
    1. timeout=0 performs a single iteration, timeout=None loops forever.
    2. A threshold keeps the task running until the poll function has
       reported success continuously for that many milliseconds. Useful
       when a page object is laggy and a single truthy read is not enough.
    3. The poll function can return a LoopResult to mark the loop as done
       explicitly and to delay the next iteration.

Example:
    >>> async def no_validation_error() -> bool:
    ...     return not await input_box.locator(".message-error").is_visible()
    >>> await repeat(
    ...     no_validation_error,
    ...     timeout=30000,
    ...     threshold=1000,
    ...     message="Email could not be verified.",
    ... )
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, ClassVar, cast

from ide_pageobjects.config import get_default_repeat_timeout
from ide_pageobjects.models import (
    LoopResult,
    LoopStatus,
    RepeatError,
    RepeatExitError,
    RepeatOptions,
    RepeatUnsuccessfulError,
)
from ide_pageobjects.utils.logging import repeat_id_context

logger = logging.getLogger(__name__)

type PollFunction[T] = Callable[[], T | LoopResult[T] | Awaitable[T | LoopResult[T]]]


def _now_ms() -> float:
    return time.monotonic() * 1000


class Threshold:
    """Stability timer.

    Tracks whether a condition has held continuously for `interval`
    milliseconds since the last reset.
    """

    def __init__(self, interval: float) -> None:
        self.interval = interval
        self.start: float | None = None
        self._reset_counter = 0

    def reset(self) -> None:
        """Arm the stability window starting now."""
        self.start = _now_ms()
        self._reset_counter += 1

    def clear(self) -> None:
        """Disarm the stability window."""
        self.start = None

    def has_finished(self) -> bool:
        """Check whether the window has fully elapsed since the last reset."""
        if self.start is None:
            return False
        return _now_ms() - self.start >= self.interval

    @property
    def reset_count(self) -> int:
        return self._reset_counter


class RepeatManager:
    """Registry of running repeat tasks.

    A task is registered while its future is unsettled. abort_all() is the
    teardown hook test runners call between sessions so that no poll from
    one session leaks into the next.

    Class Attributes:
        _instance: Singleton instance
    """

    _instance: ClassVar[RepeatManager | None] = None

    def __init__(self) -> None:
        self._repeats: set[Repeat[Any]] = set()

    @classmethod
    def get_instance(cls) -> RepeatManager:
        """Get singleton instance of RepeatManager.

        Returns:
            RepeatManager singleton instance
        """
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def size(self) -> int:
        return len(self._repeats)

    def __len__(self) -> int:
        return len(self._repeats)

    def abort_all(self) -> list[Repeat[Any]]:
        """Abort every registered task with RepeatExitError.

        Returns:
            The aborted tasks
        """
        repeats = list(self._repeats)
        if repeats:
            logger.debug("Aborting %d running repeat task(s)", len(repeats))
        for repeat_task in repeats:
            repeat_task.abort(RepeatExitError(f"Repeat task {repeat_task.id} was aborted by the manager."))
        return repeats

    def add(self, repeat_task: Repeat[Any]) -> None:
        self._repeats.add(repeat_task)

    def has(self, repeat_task: Repeat[Any]) -> bool:
        return repeat_task in self._repeats

    def remove(self, repeat_task: Repeat[Any]) -> bool:
        """Remove a task from the registry.

        Returns:
            True if the task was registered
        """
        if repeat_task not in self._repeats:
            return False
        self._repeats.remove(repeat_task)
        return True


class Repeat[T]:
    """Single polling task.

    The poll function is called with no arguments and may be sync or async.
    It either returns a plain value (implicit mode, truthy means done) or a
    LoopResult (explicit mode). The mode is fixed by the first value the
    function returns without raising; switching shapes later fails the task
    with RepeatError.

    Iterations run strictly one after another. Between iterations the task
    yields to the event loop through a scheduled wake-up: call_soon when no
    delay was requested, call_later otherwise. The wake-up handle is
    cancelled when the task settles, so an aborted task never runs another
    iteration.

    Class Attributes:
        MANAGER: Registry of running tasks
        DEFAULT_TIMEOUT: Timeout used when options do not set one
    """

    ID_GENERATOR: ClassVar[itertools.count[int]] = itertools.count(1)
    MANAGER: ClassVar[RepeatManager] = RepeatManager.get_instance()
    DEFAULT_TIMEOUT: ClassVar[float | None] = get_default_repeat_timeout()

    def __init__(self, func: PollFunction[T], options: RepeatOptions | None = None) -> None:
        """Initialize the task. Nothing runs until execute() is called.

        Args:
            func: Poll function to repeat
            options: Repeat options
        """
        self.func = func
        self.options = options or RepeatOptions()
        self._id = self.options.id or f"repeat-{next(Repeat.ID_GENERATOR)}"
        self._timeout = self.options.timeout if self.options.timeout is not None else Repeat.DEFAULT_TIMEOUT
        self.threshold = Threshold(self.options.threshold or 0)
        self._ignore_errors = tuple(self.options.ignore_errors)

        self._future: asyncio.Future[T] | None = None
        self._task: asyncio.Task[None] | None = None
        self._timer: asyncio.Handle | None = None
        self._wakeup: asyncio.Future[None] | None = None
        self._start = 0.0
        self._has_started = False
        self._finished_loop = False
        self._using_explicit_loop_signaling: bool | None = None
        self._condition_held = False
        self._cleaned_up = False

    @property
    def id(self) -> str:
        return self._id

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def has_started(self) -> bool:
        return self._has_started

    @property
    def finished_loop(self) -> bool:
        return self._finished_loop

    @property
    def using_explicit_loop_signaling(self) -> bool:
        return bool(self._using_explicit_loop_signaling)

    @property
    def _settled(self) -> bool:
        return self._future is not None and self._future.done()

    def execute(self) -> asyncio.Future[T]:
        """Execute the repeat task.

        Must be called from a running event loop. Calling it again returns
        the same future.

        Returns:
            Future resolving to the task result
        """
        future = self._ensure_future()
        if self._has_started or future.done():
            return future

        self._has_started = True
        self._start = _now_ms()
        Repeat.MANAGER.add(self)
        logger.debug("Repeat %s started (timeout=%s, threshold=%s)", self._id, self._timeout, self.threshold.interval)
        self._task = asyncio.get_running_loop().create_task(self._run(), name=f"repeat:{self._id}")
        return future

    def abort(self, value: BaseException | T | None = None) -> None:
        """Abort the task and settle its future immediately.

        An iteration already in progress is not interrupted, but its result
        is discarded.

        Args:
            value:
                Exception: the task fails with it.
                None: the task fails with RepeatExitError.
                anything else: the task resolves to it.
        """
        future = self._ensure_future()
        if future.done():
            return

        logger.debug("Repeat %s aborted", self._id)
        if value is None:
            self._reject(RepeatExitError(f"Repeat task {self._id} was aborted."))
        elif isinstance(value, BaseException):
            self._reject(value)
        else:
            self._resolve(cast(T, value))

    def cleanup(self) -> None:
        """Cancel the pending wake-up and remove the task from the manager.

        Runs once per task, whichever way the task settled.
        """
        if self._cleaned_up:
            return
        self._cleaned_up = True

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._wakeup is not None and not self._wakeup.done():
            self._wakeup.set_result(None)

        Repeat.MANAGER.remove(self)
        logger.debug("Repeat %s finished (threshold resets: %d)", self._id, self.threshold.reset_count)

    async def loop(self) -> float | None:
        """Perform a single iteration of the task.

        Returns:
            Delay in milliseconds requested before the next iteration
        """
        try:
            result = self.func()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if self._settled:
                return None
            if not isinstance(e, self._ignore_errors):
                self._reject(e)
                return None
            logger.debug("Repeat %s ignored %s: %s", self._id, type(e).__name__, e)
            done, value, delay = False, None, None
        else:
            if self._settled:
                return None
            try:
                done, value, delay = self._interpret(result)
            except Exception as e:
                # Protocol violations and values whose truth test raises
                self._reject(e)
                return None

        if not done:
            self._condition_held = False
            self.threshold.clear()
        elif self.threshold.interval > 0 and self._timeout != 0:
            if not self._condition_held:
                self._condition_held = True
                self.threshold.reset()
            done = self.threshold.has_finished()

        if done:
            self._finished_loop = True
            self._resolve(cast(T, value))
            return None

        if self._timeout == 0:
            self._finished_loop = True
            if self.options.ignore_loop_error:
                self._resolve(cast(T, None))
            else:
                await self._reject_unsuccessful()
            return None

        return delay

    async def _run(self) -> None:
        repeat_id_context.set(self._id)
        try:
            while not self._settled:
                if self._budget_exhausted():
                    await self._reject_unsuccessful()
                    return
                delay = await self.loop()
                if self._settled:
                    return
                await self._schedule_next_loop(delay)
        except asyncio.CancelledError:
            if self._future is not None and not self._future.done():
                self._future.cancel()
            self.cleanup()
            raise
        except Exception as e:
            logger.exception("Repeat %s stopped unexpectedly", self._id)
            self._reject(e)

    def _interpret(self, result: Any) -> tuple[bool, Any, float | None]:
        explicit = isinstance(result, LoopResult)
        if self._using_explicit_loop_signaling is None:
            self._using_explicit_loop_signaling = explicit
        elif self._using_explicit_loop_signaling != explicit:
            expected = "LoopResult" if self._using_explicit_loop_signaling else "plain value"
            raise RepeatError(
                f"Repeat task {self._id} expected a {expected} but the poll function returned {type(result).__name__}."
            )

        if explicit:
            return result.loop_status is LoopStatus.DONE, result.value, result.delay
        return bool(result), result, None

    def _budget_exhausted(self) -> bool:
        if self._timeout is None or self._timeout <= 0:
            return False
        return _now_ms() - self._start > self._timeout

    async def _schedule_next_loop(self, delay: float | None) -> None:
        """Wait until the next iteration may run.

        Args:
            delay: Minimum time in ms until the next iteration. None or 0
                waits a single event loop turn.
        """
        loop = asyncio.get_running_loop()
        wakeup: asyncio.Future[None] = loop.create_future()
        self._wakeup = wakeup
        if delay:
            self._timer = loop.call_later(delay / 1000, _release, wakeup)
        else:
            self._timer = loop.call_soon(_release, wakeup)
        try:
            await wakeup
        finally:
            self._timer = None
            self._wakeup = None

    async def _resolve_message(self) -> str:
        message = self.options.message
        if message is None:
            if self._timeout == 0:
                return f"Repeat task {self._id} was not successful."
            return f"Repeat task {self._id} timed out after {self._timeout} ms."
        if callable(message):
            produced = message()
            if inspect.isawaitable(produced):
                produced = await produced
            return produced
        return message

    async def _reject_unsuccessful(self) -> None:
        try:
            message = await self._resolve_message()
        except Exception as e:
            self._reject(e)
            return
        if self._settled:
            return

        if self._timeout:
            logger.warning("Repeat %s timed out after %s ms: %s", self._id, self._timeout, message)
        self._reject(RepeatUnsuccessfulError(message, repeat_id=self._id, timeout=self._timeout))

    def _ensure_future(self) -> asyncio.Future[T]:
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
            self._future.add_done_callback(self._on_settled)
        return self._future

    def _on_settled(self, future: asyncio.Future[T]) -> None:
        # Reached when the future is cancelled from outside
        self.cleanup()

    def _resolve(self, value: T) -> None:
        if self._future is None or self._future.done():
            return
        self._future.set_result(value)
        self.cleanup()

    def _reject(self, error: BaseException) -> None:
        if self._future is None or self._future.done():
            return
        self._future.set_exception(error)
        self.cleanup()


def _release(wakeup: asyncio.Future[None]) -> None:
    if not wakeup.done():
        wakeup.set_result(None)


async def repeat[T](
    func: PollFunction[T],
    options: RepeatOptions | None = None,
    /,
    **overrides: Any,
) -> T:
    """Repeat a function until it returns a truthy value.

    See Repeat for details.

    Args:
        func: Function to repeat
        options: Repeat options
        **overrides: RepeatOptions fields, applied on top of options

    Returns:
        Output value of the function

    Raises:
        RepeatUnsuccessfulError: If the task is not done within its timeout
        RepeatExitError: If the task was aborted without a value

    Example:
        >>> await repeat(lambda: editor_is_dirty(), timeout=5000, message="Editor is not dirty")
    """
    if overrides:
        options = RepeatOptions(**{**dict(options or RepeatOptions()), **overrides})
    return await Repeat(func, options).execute()
