"""
Tests for the debounce state machine.

Timings are kept short; each assertion leaves several wait periods of slack.
"""

import asyncio
import logging

import pytest

from pugstats.cache.debounce import Debouncer, DebounceState


class Recorder:
    """Async callable that counts calls and can be held open."""

    def __init__(self):
        self.calls = 0
        self.release = asyncio.Event()
        self.release.set()

    async def __call__(self):
        self.calls += 1
        await self.release.wait()
        return self.calls


class TestCoalescing:
    async def test_burst_runs_once(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=0.05, max_wait=1.0)

        for _ in range(5):
            debouncer.trigger()
            await asyncio.sleep(0.01)
        assert debouncer.state is DebounceState.PENDING
        assert func.calls == 0

        await asyncio.sleep(0.2)
        assert func.calls == 1
        assert debouncer.state is DebounceState.IDLE

    async def test_separate_bursts_run_separately(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=0.03, max_wait=1.0)

        debouncer.trigger()
        await asyncio.sleep(0.15)
        debouncer.trigger()
        await asyncio.sleep(0.15)

        assert func.calls == 2

    async def test_max_wait_forces_a_run(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=0.1, max_wait=0.25)

        for _ in range(20):
            debouncer.trigger()
            await asyncio.sleep(0.03)

        # Quiet period never elapsed, only the hard deadline could fire
        assert func.calls >= 1
        await debouncer.close()


class TestInFlight:
    async def test_triggers_during_run_yield_one_follow_up(self):
        func = Recorder()
        func.release.clear()
        debouncer = Debouncer(func, wait=0.03, max_wait=1.0)

        flush = asyncio.create_task(debouncer.flush())
        await asyncio.sleep(0.01)
        assert debouncer.state is DebounceState.RUNNING

        for _ in range(3):
            debouncer.trigger()

        func.release.set()
        await flush
        assert debouncer.state is DebounceState.PENDING

        await asyncio.sleep(0.15)
        assert func.calls == 2
        assert debouncer.runs == 2
        assert debouncer.state is DebounceState.IDLE

    async def test_concurrent_flushes_share_one_run(self):
        func = Recorder()
        func.release.clear()
        debouncer = Debouncer(func, wait=10, max_wait=10)

        first = asyncio.create_task(debouncer.flush())
        await asyncio.sleep(0.01)
        second = asyncio.create_task(debouncer.flush())
        await asyncio.sleep(0.01)

        func.release.set()
        assert await first == await second == 1
        assert func.calls == 1


class TestFlush:
    async def test_flush_skips_quiet_period(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=10, max_wait=10)

        debouncer.trigger()
        assert debouncer.state is DebounceState.PENDING

        assert await debouncer.flush() == 1
        assert debouncer.state is DebounceState.IDLE

        await asyncio.sleep(0.05)
        assert func.calls == 1

    async def test_flush_propagates_errors(self):
        async def fail():
            raise RuntimeError("boom")

        debouncer = Debouncer(fail, wait=10, max_wait=10)

        with pytest.raises(RuntimeError):
            await debouncer.flush()
        assert debouncer.state is DebounceState.IDLE

    async def test_scheduled_failure_is_logged(self, caplog):
        async def fail():
            raise RuntimeError("boom")

        debouncer = Debouncer(fail, wait=0.02, max_wait=0.1, name="failing job")

        with caplog.at_level(logging.ERROR, logger="pugstats.cache.debounce"):
            debouncer.trigger()
            await asyncio.sleep(0.1)

        assert debouncer.state is DebounceState.IDLE
        assert "failing job run failed" in caplog.text


class TestClose:
    async def test_close_cancels_pending_run(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=0.05, max_wait=1.0)

        debouncer.trigger()
        await debouncer.close()
        await asyncio.sleep(0.1)

        assert func.calls == 0
        assert debouncer.state is DebounceState.IDLE

    async def test_trigger_during_close_is_ignored(self):
        func = Recorder()
        func.release.clear()
        debouncer = Debouncer(func, wait=0.02, max_wait=1.0)

        flush = asyncio.create_task(debouncer.flush())
        await asyncio.sleep(0.01)
        closing = asyncio.create_task(debouncer.close())
        await asyncio.sleep(0.01)

        debouncer.trigger()
        func.release.set()
        await closing
        await flush
        await asyncio.sleep(0.1)

        assert func.calls == 1
        assert debouncer.state is DebounceState.IDLE

    async def test_trigger_after_close_is_ignored(self):
        func = Recorder()
        debouncer = Debouncer(func, wait=0.02, max_wait=1.0)

        await debouncer.close()
        debouncer.trigger()
        await asyncio.sleep(0.1)

        assert func.calls == 0
        assert debouncer.state is DebounceState.IDLE

    def test_max_wait_never_shorter_than_wait(self):
        debouncer = Debouncer(Recorder(), wait=2.0, max_wait=1.0)
        assert debouncer.max_wait == 2.0
