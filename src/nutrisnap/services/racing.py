"""Deadline racing for single asynchronous operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

_logger = logging.getLogger(__name__)


class RaceError(Exception):
    """Base class for racer outcomes other than success."""


class RaceTimeout(RaceError):
    """The deadline elapsed before the operation settled."""

    def __init__(self, deadline_seconds: float) -> None:
        super().__init__(f"Operation exceeded its {deadline_seconds:g}s deadline")
        self.deadline_seconds = deadline_seconds


class RaceFailure(RaceError):
    """The operation settled with its own error before the deadline."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause) or type(cause).__name__)
        self.cause = cause


async def race(
    operation: Callable[[], Awaitable[T]], deadline_seconds: float
) -> T:
    """Run an operation against a hard deadline.

    The winner's value is returned. An error raised by the operation is
    re-raised as ``RaceFailure``. When the deadline wins, the operation is
    cancelled and left to wind down on its own; it is never awaited again and
    whatever it eventually produces is dropped.
    """
    task = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=deadline_seconds)
    except asyncio.CancelledError:
        _abandon(task)
        raise
    if not done:
        _abandon(task)
        raise RaceTimeout(deadline_seconds)
    if task.cancelled():
        raise RaceFailure(asyncio.CancelledError("operation was cancelled"))
    error = task.exception()
    if error is not None:
        raise RaceFailure(error) from error
    return task.result()


def _abandon(task: "asyncio.Future[object]") -> None:
    task.cancel()
    task.add_done_callback(_discard_outcome)


def _discard_outcome(task: "asyncio.Future[object]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        _logger.debug("Discarded late failure from abandoned operation: %s", error)
    else:
        _logger.debug("Discarded late result from abandoned operation")
