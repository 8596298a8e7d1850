"""
AttemptGuard — at most one running attempt per key.

    guard = AttemptGuard()

    result = await guard.run("checkout", lambda: place_order(snapshot))

    match result:
        case Ok(order):
            show(order)
        case Error(e) if e.kind is AttemptErrorKind.IN_PROGRESS:
            pass  # double tap, ignore
        case Error(e):
            show_error(e.original_error)

Inside an operation, work that must finish once started goes through
guard.shield(key, work): a cancelled caller stops waiting, the work runs on
and the key stays claimed until it ends.

A key is held only while its operation (or shielded work) runs. Succeeded,
failed, raised or cancelled, the next attempt starts from the top.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from kungfu import Error, Ok, Result

from cartpay.attempts._types import AttemptError, AttemptErrorKind

logger = logging.getLogger(__name__)

type Operation[T, E] = Callable[[], Awaitable[Result[T, E]]]


class AttemptGuard:
    """
    Runs operations under a key and refuses concurrent ones.

    Note: the key is claimed before the operation is first awaited, so two
    taps in the same tick still produce one run.
    """

    def __init__(self) -> None:
        self._running: set[str] = set()
        self._shielded: dict[str, asyncio.Future[Any]] = {}

    def is_running(self, key: str) -> bool:
        return key in self._running or key in self._shielded

    async def run[T, E](self, key: str, operation: Operation[T, E]) -> Result[T, AttemptError[E]]:
        if self.is_running(key):
            logger.debug("Attempt %s already in progress", key)
            return Error(
                AttemptError(AttemptErrorKind.IN_PROGRESS, f"Attempt {key} already in progress", key)
            )

        self._running.add(key)
        try:
            result = await operation()
        finally:
            self._running.discard(key)

        match result:
            case Ok(value):
                return Ok(value)
            case Error(error):
                return Error(
                    AttemptError(AttemptErrorKind.EXECUTION, f"Attempt {key} failed", key, error)
                )

    async def shield[T](self, key: str, work: Awaitable[T]) -> T:
        """Await work that survives cancellation of the caller, holding key until it ends."""
        task = asyncio.ensure_future(work)
        self._shielded[key] = task

        def release(done: asyncio.Future[Any]) -> None:
            if self._shielded.get(key) is done:
                del self._shielded[key]
                logger.debug("Shielded work for attempt %s finished", key)

        task.add_done_callback(release)
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                release(task)


__all__ = ("AttemptGuard", "Operation")
