"""
Step runner: timed continuations for the guide engine.

The guide engine is single-threaded asyncio code whose only suspension
points are four timed delays (scroll settle, auto-execute, skip after a
missing element, auto-stop after completion). While a delay is pending,
the user can press Previous / Next / Exit or a key, which re-enters the
engine. A continuation that resumes after such a change must not touch
the overlay.

The runner makes that explicit with two counters:

- `epoch`, bumped by every `start()` and `stop()`.
- `seq`, bumped every time the engine shows a step or completes.

A continuation captures a RunToken before sleeping; `delay()` returns
False when either counter moved in the meantime, and the caller returns
without doing anything.

Fire-and-forget work (control button clicks, auto-stop) is spawned as
tasks the runner keeps referenced until they finish; `drain()` awaits
all of them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, Optional, Set


LOG = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RunToken:
    """Identity of one scheduled continuation."""

    epoch: int
    seq: int
    index: int


class StepRunner:
    """
    Epoch / sequence bookkeeping plus task ownership for one GuideEngine.

    Args:
        sleep:
            Coroutine function taking seconds; defaults to asyncio.sleep.
            Tests inject a fake to control time.
    """

    def __init__(self, sleep: Optional[Sleep] = None) -> None:
        self._sleep: Sleep = sleep or asyncio.sleep
        self.epoch = 0
        self.seq = 0
        self._tasks: Set["asyncio.Task[Any]"] = set()

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def new_epoch(self) -> int:
        self.epoch += 1
        return self.epoch

    def issue(self, index: int) -> RunToken:
        self.seq += 1
        return RunToken(epoch=self.epoch, seq=self.seq, index=index)

    def is_current(self, token: RunToken) -> bool:
        return token.epoch == self.epoch and token.seq == self.seq

    async def delay(self, ms: float, token: RunToken) -> bool:
        """Sleep `ms` milliseconds; return whether `token` is still current."""
        await self._sleep(max(0.0, ms) / 1000.0)
        current = self.is_current(token)
        if not current:
            LOG.debug("Dropping stale continuation token=%s", token)
        return current

    # ------------------------------------------------------------------ #
    # Tasks
    # ------------------------------------------------------------------ #

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> "asyncio.Task[Any]":
        """Schedule `coro` on the running loop and keep a reference to it."""
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOG.error("Guide task failed: %s", exc, exc_info=exc)

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    async def drain(self) -> None:
        """Await every spawned task, including ones spawned while draining."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)


__all__ = ["Sleep", "RunToken", "StepRunner"]
