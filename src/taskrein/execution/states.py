"""Execution state machine.

Defines the lifecycle states of a controlled execution and the transition
rules the :class:`~taskrein.execution.controller.ExecutionController`
enforces.

Transitions come in two flavours:

- **Caller operations** (``start``, ``pause``, ``stop``, ``cancel``) may be
  invoked by anyone holding the controller. They are idempotent: an operation
  that is not permitted from the current state is a no-op, not an error.
- **Internal outcomes** (``COMPLETED``, ``ERROR``, ``TIMEOUT``) are recorded by
  the runners only.
"""

from __future__ import annotations

from enum import Enum


class ExecutionState(str, Enum):
    """State of a controlled execution.

    Valid transition graph::

        start   : NOT_STARTED | PAUSED        → RUNNING
        pause   : RUNNING                     → PAUSED
        stop    : RUNNING | PAUSED            → STOPPED
        cancel  : any except COMPLETED/CANCELLED → CANCELLED
        internal: RUNNING | PAUSED            → COMPLETED | ERROR | TIMEOUT
    """

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    ERROR = "error"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


class ControlOperation(str, Enum):
    """Caller-invocable controller operations."""

    START = "start"
    PAUSE = "pause"
    STOP = "stop"
    CANCEL = "cancel"


TERMINAL_STATES: frozenset[ExecutionState] = frozenset({
    ExecutionState.STOPPED,
    ExecutionState.CANCELLED,
    ExecutionState.COMPLETED,
    ExecutionState.ERROR,
    ExecutionState.TIMEOUT,
})

# States a caller reached on purpose; runner outcomes never overwrite them.
CALLER_TERMINAL_STATES: frozenset[ExecutionState] = frozenset({
    ExecutionState.STOPPED,
    ExecutionState.CANCELLED,
})

# States a runner may still be inside while work executes.
ACTIVE_STATES: frozenset[ExecutionState] = frozenset({
    ExecutionState.RUNNING,
    ExecutionState.PAUSED,
})

OUTCOME_STATES: frozenset[ExecutionState] = frozenset({
    ExecutionState.COMPLETED,
    ExecutionState.ERROR,
    ExecutionState.TIMEOUT,
})


# --- Caller operation rules: operation → (allowed source states, target) ---

CALLER_TRANSITIONS: dict[ControlOperation, tuple[frozenset[ExecutionState], ExecutionState]] = {
    ControlOperation.START: (
        frozenset({ExecutionState.NOT_STARTED, ExecutionState.PAUSED}),
        ExecutionState.RUNNING,
    ),
    ControlOperation.PAUSE: (
        frozenset({ExecutionState.RUNNING}),
        ExecutionState.PAUSED,
    ),
    ControlOperation.STOP: (
        frozenset({ExecutionState.RUNNING, ExecutionState.PAUSED}),
        ExecutionState.STOPPED,
    ),
    ControlOperation.CANCEL: (
        frozenset(ExecutionState) - {ExecutionState.COMPLETED, ExecutionState.CANCELLED},
        ExecutionState.CANCELLED,
    ),
}


def can_transition(current: ExecutionState, operation: ControlOperation) -> bool:
    """Return True if *operation* changes state when applied to *current*.

    Example:
        >>> can_transition(ExecutionState.RUNNING, ControlOperation.PAUSE)
        True
        >>> can_transition(ExecutionState.NOT_STARTED, ControlOperation.PAUSE)
        False
    """
    allowed, _ = CALLER_TRANSITIONS[operation]
    return current in allowed


def target_state(operation: ControlOperation) -> ExecutionState:
    """State reached when *operation* is permitted."""
    return CALLER_TRANSITIONS[operation][1]


def can_record_outcome(current: ExecutionState, outcome: ExecutionState) -> bool:
    """Return True if a runner may record *outcome* over *current*.

    Outcomes land on active states. ``COMPLETED`` may also be re-recorded on a
    controller reused after an earlier successful run.
    """
    if outcome not in OUTCOME_STATES:
        raise ValueError(f"{outcome.value} is not a runner outcome")
    if current in CALLER_TERMINAL_STATES:
        return False
    return current in ACTIVE_STATES or current in OUTCOME_STATES


__all__ = [
    "ExecutionState",
    "ControlOperation",
    "TERMINAL_STATES",
    "CALLER_TERMINAL_STATES",
    "ACTIVE_STATES",
    "OUTCOME_STATES",
    "CALLER_TRANSITIONS",
    "can_transition",
    "target_state",
    "can_record_outcome",
]
