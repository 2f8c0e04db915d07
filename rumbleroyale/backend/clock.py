"""Countdown ticker and cancellable delayed-step chains on the asyncio loop."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Tuple

from .errors import ClockBusy

logger = logging.getLogger(__name__)

Step = Tuple[float, Callable[[], Any]]
SleepFn = Callable[[float], Awaitable[None]]


class TimerHandle:
    """Handle for one countdown or chain; cancel() takes effect immediately."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._task: asyncio.Task[None] | None = None
        self._cancelled = False
        self._finished = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def alive(self) -> bool:
        return not self._cancelled and not self._finished

    def cancel(self) -> None:
        if not self.alive:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the underlying task has stopped, however it stopped."""
        if self._task is not None:
            await asyncio.wait({self._task})


class RoundClock:
    def __init__(self, tick_interval: float = 1.0, sleep: SleepFn = asyncio.sleep) -> None:
        self.tick_interval = tick_interval
        self._sleep = sleep
        self._countdown: TimerHandle | None = None
        self._chain: TimerHandle | None = None

    @property
    def countdown_active(self) -> bool:
        return self._countdown is not None and self._countdown.alive

    @property
    def chain_active(self) -> bool:
        return self._chain is not None and self._chain.alive

    @property
    def busy(self) -> bool:
        return self.countdown_active or self.chain_active

    def start_countdown(
        self,
        duration_seconds: int,
        on_tick: Callable[[int], None],
        on_elapsed: Callable[[], None],
    ) -> TimerHandle:
        if self.busy:
            raise ClockBusy("Cannot start a countdown while another timer is running")
        handle = TimerHandle("countdown")
        self._countdown = handle
        on_tick(duration_seconds)
        handle._task = self._spawn(self._run_countdown(handle, duration_seconds, on_tick, on_elapsed))
        return handle

    def cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def schedule_chain(
        self,
        steps: Iterable[Step],
        on_complete: Callable[[], None] | None = None,
    ) -> TimerHandle:
        """Run (delay, action) steps in order; each delay counts from the previous step."""
        if self.busy:
            raise ClockBusy("Cannot schedule a chain while another timer is running")
        handle = TimerHandle("chain")
        self._chain = handle
        handle._task = self._spawn(self._run_chain(handle, steps, on_complete))
        return handle

    def cancel_chain(self) -> None:
        if self._chain is not None:
            self._chain.cancel()
            self._chain = None

    def cancel_all(self) -> None:
        self.cancel_countdown()
        self.cancel_chain()

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        task.add_done_callback(_report_failure)
        return task

    async def _run_countdown(
        self,
        handle: TimerHandle,
        duration_seconds: int,
        on_tick: Callable[[int], None],
        on_elapsed: Callable[[], None],
    ) -> None:
        try:
            for remaining in range(duration_seconds - 1, -1, -1):
                await self._sleep(self.tick_interval)
                if handle.cancelled:
                    return
                on_tick(remaining)
            if handle.cancelled:
                return
        finally:
            self._retire(handle)
        on_elapsed()

    async def _run_chain(
        self,
        handle: TimerHandle,
        steps: Iterable[Step],
        on_complete: Callable[[], None] | None,
    ) -> None:
        try:
            for delay, action in steps:
                if delay > 0:
                    await self._sleep(delay)
                if handle.cancelled:
                    return
                result = action()
                if inspect.isawaitable(result):
                    await result
                if handle.cancelled:
                    return
        finally:
            self._retire(handle)
        if on_complete is not None:
            on_complete()

    def _retire(self, handle: TimerHandle) -> None:
        handle._finished = True
        if self._countdown is handle:
            self._countdown = None
        if self._chain is handle:
            self._chain = None


def _report_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Timer task failed", exc_info=exc)
