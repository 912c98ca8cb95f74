"""Cancellation signal and pause gate.

WHY
───
Work may run on the event loop (coroutines, foreground callables) or on a
worker thread (background callables). Both kinds must be able to block on the
same pause gate and observe the same cancellation signal, and both must be
woken when a controller on *another* thread changes state.
``asyncio.Event`` is loop-bound and ``threading.Event`` cannot be awaited, so
both primitives here are built on :class:`_Flag`, which pairs a
``threading.Event`` with a set of loop futures woken through
``call_soon_threadsafe``.

ARCHITECTURE
────────────
::

    _Flag  (threading.Event + {(loop, future)} waiters)
      ├── CancellationSignal  ─ one-shot, set by stop/cancel/timeout
      └── PauseGate           ─ reusable, open ⇄ closed

    thread waiters      → flag.wait(timeout)
    coroutine waiters   → await flag.wait_async(timeout)

Related modules:
    controller.py  — owns one signal and one gate per controller
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable

from taskrein.core.errors import OperationCancelledError


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


class _Flag:
    """Thread-safe binary flag awaitable from any event loop."""

    def __init__(self, initially_set: bool = False) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._waiters: set[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]] = set()
        if initially_set:
            self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def _set(self) -> None:
        with self._lock:
            self._event.set()
            waiters = self._drain_waiters()
        self._wake(waiters)

    def _drain_waiters(self) -> list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]]:
        # caller holds self._lock
        waiters = list(self._waiters)
        self._waiters.clear()
        return waiters

    @staticmethod
    def _wake(waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future[None]]]) -> None:
        for loop, future in waiters:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve, future)

    def _clear(self) -> None:
        self._event.clear()

    def wait(self, timeout: float | None = None) -> bool:
        """Block the calling thread until set. Returns False on timeout."""
        return self._event.wait(timeout)

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Suspend the calling coroutine until set. Returns False on timeout."""
        if self._event.is_set():
            return True
        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()
        entry = (loop, future)
        with self._lock:
            if self._event.is_set():
                return True
            self._waiters.add(entry)
        try:
            await asyncio.wait_for(future, timeout)
            return True
        except TimeoutError:
            return self._event.is_set()
        finally:
            with self._lock:
                self._waiters.discard(entry)
            if not future.done():
                future.cancel()


class CancellationSignal(_Flag):
    """Cooperative cancellation token shared by every invocation of a run.

    Work functions receive the signal as their ``token`` argument and check it
    at their own safe points::

        def work(token):
            for row in rows:
                token.raise_if_cancelled()
                process(row)
    """

    def __init__(self) -> None:
        super().__init__(initially_set=False)
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self.is_set()

    def cancel(self) -> None:
        """Raise the signal. Idempotent."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
            waiters = self._drain_waiters()
        self._wake(waiters)
        for callback in callbacks:
            callback()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`OperationCancelledError` if the signal is raised."""
        if self.is_set():
            raise OperationCancelledError()

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run *callback* once when the signal is raised (immediately if already raised)."""
        with self._lock:
            if not self.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def __repr__(self) -> str:
        return f"CancellationSignal(cancelled={self.is_cancelled})"


class PauseGate(_Flag):
    """Reusable binary gate: open lets waiters through, closed blocks them.

    Initially open. A single controller closes and reopens it; any number of
    threads and coroutines may wait on it concurrently.
    """

    def __init__(self) -> None:
        super().__init__(initially_set=True)

    @property
    def is_open(self) -> bool:
        return self.is_set()

    def open(self) -> None:
        self._set()

    def close(self) -> None:
        self._clear()

    def __repr__(self) -> str:
        return f"PauseGate(open={self.is_open})"


__all__ = ["CancellationSignal", "PauseGate"]
