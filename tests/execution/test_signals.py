"""
Tests for CancellationSignal and PauseGate.

Tests cover:
- Idempotent cancellation and callbacks
- Thread waiters and coroutine waiters
- Wake-up from another thread
"""

import asyncio
import threading

import pytest

from taskrein.core.errors import OperationCancelledError
from taskrein.execution.signals import CancellationSignal, PauseGate


class TestCancellationSignal:
    def test_initially_not_cancelled(self):
        token = CancellationSignal()
        assert not token.is_cancelled
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self):
        token = CancellationSignal()
        calls = []
        token.add_callback(lambda: calls.append(1))
        token.cancel()
        token.cancel()
        assert token.is_cancelled
        assert calls == [1]

    def test_raise_if_cancelled(self):
        token = CancellationSignal()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            token.raise_if_cancelled()

    def test_callback_after_cancel_runs_immediately(self):
        token = CancellationSignal()
        token.cancel()
        calls = []
        token.add_callback(lambda: calls.append("late"))
        assert calls == ["late"]

    def test_thread_wait_times_out(self):
        assert CancellationSignal().wait(timeout=0.01) is False

    def test_thread_wait_woken_by_cancel(self):
        token = CancellationSignal()
        threading.Timer(0.02, token.cancel).start()
        assert token.wait(timeout=2.0) is True

    @pytest.mark.asyncio
    async def test_async_wait_times_out(self):
        assert await CancellationSignal().wait_async(timeout=0.01) is False

    @pytest.mark.asyncio
    async def test_async_wait_woken_from_other_thread(self):
        token = CancellationSignal()
        threading.Timer(0.02, token.cancel).start()
        assert await token.wait_async(timeout=2.0) is True

    @pytest.mark.asyncio
    async def test_async_wait_already_cancelled(self):
        token = CancellationSignal()
        token.cancel()
        assert await token.wait_async() is True

    @pytest.mark.asyncio
    async def test_many_async_waiters(self):
        token = CancellationSignal()
        waiters = [asyncio.ensure_future(token.wait_async(timeout=2.0)) for _ in range(5)]
        await asyncio.sleep(0)
        token.cancel()
        assert await asyncio.gather(*waiters) == [True] * 5


class TestPauseGate:
    def test_initially_open(self):
        gate = PauseGate()
        assert gate.is_open
        assert gate.wait(timeout=0) is True

    def test_close_blocks_then_open_releases(self):
        gate = PauseGate()
        gate.close()
        assert gate.wait(timeout=0.01) is False
        threading.Timer(0.02, gate.open).start()
        assert gate.wait(timeout=2.0) is True

    def test_reusable(self):
        gate = PauseGate()
        for _ in range(3):
            gate.close()
            assert not gate.is_open
            gate.open()
            assert gate.is_open

    @pytest.mark.asyncio
    async def test_async_wait_on_closed_gate(self):
        gate = PauseGate()
        gate.close()
        assert await gate.wait_async(timeout=0.01) is False
        threading.Timer(0.02, gate.open).start()
        assert await gate.wait_async(timeout=2.0) is True
