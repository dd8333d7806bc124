"""
Debounce with a maximum wait, as an explicit asyncio state machine.

    IDLE --trigger--> PENDING --deadline--> RUNNING --done--> IDLE
                        ^  |                   |
                        +--+ trigger:          | trigger: remember one
                          push quiet deadline  | follow-up, re-enter PENDING
                          (never the hard one) | when the run finishes

The quiet deadline is `wait` after the latest trigger; the hard deadline is
`max_wait` after the first trigger of the burst. The run fires at whichever
comes first. At most one run is ever in flight.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DebounceState(Enum):
    """Debouncer state."""

    IDLE = "idle"
    PENDING = "pending"
    RUNNING = "running"


class Debouncer:
    """Coalesces bursts of trigger() calls into single runs of an async function."""

    def __init__(
        self,
        func: Callable[[], Awaitable[Any]],
        wait: float,
        max_wait: float,
        name: str = "debounced",
    ):
        """
        Args:
            func: Coroutine function to run
            wait: Quiet period in seconds
            max_wait: Longest a run may be deferred after the first trigger
            name: Label used in log messages
        """
        self._func = func
        self.wait = wait
        self.max_wait = max(max_wait, wait)
        self.name = name

        self._state = DebounceState.IDLE
        self._quiet_deadline = 0.0
        self._hard_deadline = 0.0
        self._follow_up = False
        self._closed = False
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self.runs = 0

    @property
    def state(self) -> DebounceState:
        return self._state

    def trigger(self) -> None:
        """Request a run. Must be called from within the event loop; ignored once closed."""
        if self._closed:
            return

        loop = asyncio.get_running_loop()
        now = loop.time()

        if self._state is DebounceState.RUNNING:
            self._follow_up = True
            return

        if self._state is DebounceState.IDLE:
            self._state = DebounceState.PENDING
            self._hard_deadline = now + self.max_wait
            self._timer = loop.create_task(self._wait_then_run())

        self._quiet_deadline = now + self.wait

    async def flush(self) -> Any:
        """
        Run now, bypassing the quiet period.

        Joins the in-flight run if there is one. Exceptions from the run
        propagate to the caller.
        """
        if self._state is DebounceState.RUNNING and self._inflight is not None:
            return await asyncio.shield(self._inflight)

        self._cancel_timer()
        return await asyncio.shield(self._start())

    async def close(self) -> None:
        """Cancel any pending run and wait for an in-flight one to finish. Later triggers are ignored."""
        self._closed = True
        self._cancel_timer()
        self._follow_up = False
        if self._inflight is not None:
            await asyncio.gather(self._inflight, return_exceptions=True)
        self._state = DebounceState.IDLE

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._state is DebounceState.PENDING:
            self._state = DebounceState.IDLE

    def _start(self) -> asyncio.Task:
        self._state = DebounceState.RUNNING
        self._follow_up = False
        self._inflight = asyncio.get_running_loop().create_task(self._execute())
        return self._inflight

    async def _execute(self) -> Any:
        try:
            return await self._func()
        finally:
            self.runs += 1
            self._inflight = None
            self._state = DebounceState.IDLE
            if self._follow_up:
                self._follow_up = False
                self.trigger()

    async def _wait_then_run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            deadline = min(self._quiet_deadline, self._hard_deadline)
            delay = deadline - loop.time()
            if delay <= 0:
                break
            await asyncio.sleep(delay)

        self._timer = None
        try:
            await self._start()
        except Exception as e:
            logger.error(f"{self.name} run failed: {e}", exc_info=True)
