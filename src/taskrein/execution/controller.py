"""ExecutionController — the single source of truth for pause/cancel state.

WHY
───
A UI button, a watchdog thread and the runner itself all need to steer the
same execution. The controller serializes every state change behind one lock
and exposes the two primitives work actually waits on: a cancellation signal
and a pause gate.

ARCHITECTURE
────────────
::

    ExecutionController
      ├── .start() / .pause() / .stop() / .cancel()   ─ caller operations
      ├── ._record_outcome(state)                     ─ runner-only outcomes
      ├── .token        (CancellationSignal)          ─ passed to every work call
      ├── .pause_gate   (PauseGate)                   ─ closed while PAUSED
      ├── .wait_if_paused() / .wait_if_paused_async() ─ cooperative checkpoints
      └── .dispose()                                  ─ release waiters

    Raising the token always reopens the gate, so a paused worker observes
    cancellation instead of hanging.

Ownership: a runner that creates its own controller disposes it when ``run()``
returns. A caller-supplied controller belongs to the caller, who may reuse it
or drive it from another thread. Disposing a caller-owned controller while a
run is in flight is misuse; the run's outcome is then undefined.

Example::

    controller = ExecutionController()
    runner = create_batch(files, upload).with_controller(controller)
    task = asyncio.create_task(runner.run())
    ...
    controller.pause()   # workers finish their current item and wait
    controller.start()   # resume
    controller.cancel()  # workers observe the token and exit
"""

from __future__ import annotations

import threading
import uuid
from enum import IntEnum

from taskrein.core.errors import ControllerDisposedError, ValidationError
from taskrein.core.logging import get_logger
from taskrein.execution.signals import CancellationSignal, PauseGate
from taskrein.execution.states import (
    ControlOperation,
    ExecutionState,
    can_record_outcome,
    can_transition,
    target_state,
)

logger = get_logger(__name__)


class Priority(IntEnum):
    """Best-effort scheduling hint for worker threads."""

    LOWEST = -2
    BELOW_NORMAL = -1
    NORMAL = 0
    ABOVE_NORMAL = 1
    HIGHEST = 2

    @property
    def niceness(self) -> int:
        """POSIX nice increment for this level (LOWEST=+10 … HIGHEST=-10)."""
        return -5 * int(self)

    @classmethod
    def coerce(cls, value: object) -> Priority:
        """Return *value* as a level; ValidationError if it names none."""
        if isinstance(value, bool):
            raise ValidationError("priority must be a Priority level", field="priority", value=value)
        try:
            return cls(value)
        except ValueError as exc:
            raise ValidationError(
                "priority must be a Priority level", field="priority", value=value
            ) from exc


class ExecutionController:
    """Thread-safe state machine steering one or more runs.

    Args:
        priority: Scheduling hint applied to background worker threads.
        name: Identifier used in logs (random if omitted).
    """

    def __init__(self, priority: Priority = Priority.NORMAL, *, name: str | None = None) -> None:
        self.name = name or uuid.uuid4().hex[:8]
        self._lock = threading.Lock()
        self._state = ExecutionState.NOT_STARTED
        self._token = CancellationSignal()
        self._gate = PauseGate()
        self._priority = Priority.coerce(priority)
        self._disposed = False
        self._token.add_callback(self._gate.open)

    # ── Read-only queries ────────────────────────────────────────────

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def token(self) -> CancellationSignal:
        """The cancellation signal handed to every work invocation."""
        return self._token

    @property
    def pause_gate(self) -> PauseGate:
        return self._gate

    @property
    def is_running(self) -> bool:
        return self._state is ExecutionState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self._state is ExecutionState.PAUSED

    @property
    def is_cancelled(self) -> bool:
        return self._state is ExecutionState.CANCELLED

    @property
    def is_completed(self) -> bool:
        return self._state is ExecutionState.COMPLETED

    @property
    def is_stopped(self) -> bool:
        return self._state is ExecutionState.STOPPED

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def priority(self) -> Priority:
        return self._priority

    @priority.setter
    def priority(self, value: Priority) -> None:
        self._priority = Priority.coerce(value)

    # ── Caller operations ────────────────────────────────────────────

    def start(self) -> bool:
        """Start or resume. ``NOT_STARTED | PAUSED → RUNNING``; opens the gate."""
        return self._apply(ControlOperation.START)

    def pause(self) -> bool:
        """Pause. ``RUNNING → PAUSED``; closes the gate."""
        return self._apply(ControlOperation.PAUSE)

    def stop(self) -> bool:
        """Stop. ``RUNNING | PAUSED → STOPPED``; raises the token."""
        return self._apply(ControlOperation.STOP)

    def cancel(self) -> bool:
        """Cancel from any state but ``COMPLETED``/``CANCELLED``; raises the token."""
        return self._apply(ControlOperation.CANCEL)

    def _apply(self, operation: ControlOperation) -> bool:
        with self._lock:
            if self._disposed:
                raise ControllerDisposedError().with_context(
                    controller=self.name, operation=operation.value
                )
            current = self._state
            if not can_transition(current, operation):
                logger.debug(
                    "controller.transition_ignored",
                    controller=self.name,
                    operation=operation.value,
                    state=current.value,
                )
                return False
            self._state = target_state(operation)
            if operation is ControlOperation.START:
                self._gate.open()
            elif operation is ControlOperation.PAUSE:
                self._gate.close()

        if operation in (ControlOperation.STOP, ControlOperation.CANCEL):
            self._token.cancel()

        logger.debug(
            "controller.transition",
            controller=self.name,
            operation=operation.value,
            previous=current.value,
            state=self._state.value,
        )
        return True

    # ── Runner outcomes ──────────────────────────────────────────────

    def _record_outcome(self, outcome: ExecutionState) -> bool:
        """Record COMPLETED / ERROR / TIMEOUT. Never overrides STOPPED/CANCELLED.

        A TIMEOUT also raises the token so well-behaved work exits promptly.
        """
        with self._lock:
            current = self._state
            if not can_record_outcome(current, outcome):
                return False
            self._state = outcome

        if outcome is ExecutionState.TIMEOUT:
            self._token.cancel()

        logger.debug(
            "controller.outcome",
            controller=self.name,
            previous=current.value,
            state=outcome.value,
        )
        return True

    # ── Checkpoints ──────────────────────────────────────────────────

    def wait_if_paused(self, timeout: float | None = None) -> bool:
        """Block this thread while paused, then honour cancellation.

        Returns:
            True if the gate is open, False if *timeout* elapsed first.

        Raises:
            OperationCancelledError: If the token was raised.
        """
        opened = self._gate.wait(timeout)
        self._token.raise_if_cancelled()
        return opened

    async def wait_if_paused_async(self, timeout: float | None = None) -> bool:
        """Coroutine form of :meth:`wait_if_paused`."""
        opened = await self._gate.wait_async(timeout)
        self._token.raise_if_cancelled()
        return opened

    # ── Lifetime ─────────────────────────────────────────────────────

    def dispose(self) -> None:
        """Release every gate waiter and refuse further caller operations."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._gate.open()
        logger.debug("controller.disposed", controller=self.name, state=self._state.value)

    def __enter__(self) -> ExecutionController:
        return self

    def __exit__(self, *args: object) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"ExecutionController(name={self.name!r}, state={self._state.value})"


__all__ = ["ExecutionController", "Priority"]
