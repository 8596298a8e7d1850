"""
FocusScope — tasks that live exactly as long as a screen has focus.

    scope = FocusScope("payment")
    scope.spawn(orchestrator.poll(intent_id))
    ...
    scope.release()   # blur / unmount: everything spawned is cancelled

Also usable as an async context manager:

    async with FocusScope("payment") as scope:
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

logger = logging.getLogger(__name__)


class ScopeReleasedError(RuntimeError):
    """Spawning into a scope that already lost focus."""


class FocusScope:
    def __init__(self, name: str = "screen") -> None:
        self.name = name
        self._tasks: set[asyncio.Future[Any]] = set()
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def spawn[T](self, work: Awaitable[T]) -> asyncio.Future[T]:
        """Run work (a coroutine or any awaitable, e.g. a lazy result) inside the scope."""
        if self._released:
            if asyncio.iscoroutine(work):
                work.close()
            raise ScopeReleasedError(f"Scope {self.name!r} already released")
        task = asyncio.ensure_future(work)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def release(self) -> int:
        """Cancel everything still running. Idempotent. Returns how many were cancelled."""
        self._released = True
        running = [t for t in self._tasks if not t.done()]
        for task in running:
            task.cancel()
        if running:
            logger.debug("Scope %s released, cancelled %d task(s)", self.name, len(running))
        return len(running)

    async def __aenter__(self) -> FocusScope:
        return self

    async def __aexit__(self, *exc: object) -> None:
        self.release()


__all__ = ("FocusScope", "ScopeReleasedError")
