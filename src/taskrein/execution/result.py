"""ExecutionResult — the immutable outcome of one ``run()``.

Runners never let work failures or cancellations escape ``run()``; they fold
every outcome into an ``ExecutionResult``. Callers inspect ``final_state`` (or
the ``is_*`` shortcuts), or call :meth:`ExecutionResult.unwrap` to get the
payload back as a value or a typed exception.

Construct results through the classmethod factories only. Each factory fixes
a consistent state/payload combination, and ``__post_init__`` rejects the
combinations the factories never produce.

Example::

    result = await create_task(fetch_quote).with_timeout(2.0).run()
    match result.final_state:
        case ExecutionState.COMPLETED:
            show(result.result)
        case ExecutionState.TIMEOUT:
            retry_later()
        case _:
            log.warning("quote.failed", **result.to_dict())
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from taskrein.core.errors import (
    OperationCancelledError,
    TaskTimeoutError,
    ValidationError,
    WorkError,
)
from taskrein.execution.states import ExecutionState

T = TypeVar("T")

FAILURE_STATES: frozenset[ExecutionState] = frozenset({
    ExecutionState.ERROR,
    ExecutionState.CANCELLED,
    ExecutionState.TIMEOUT,
    ExecutionState.STOPPED,
})


@dataclass(frozen=True, slots=True)
class ExecutionResult(Generic[T]):
    """Outcome of a single-task or batch run.

    Attributes:
        final_state: State the run ended in.
        result: Payload of a successful single-task run.
        results: Payload of a successful batch run (``None`` otherwise).
            Parallel batches list results in completion order.
        error: Exception behind a failed/cancelled/timed-out/stopped run, if any.
        elapsed: Wall-clock seconds from ``run()`` entry to the outcome.
    """

    final_state: ExecutionState
    result: T | None = None
    results: tuple[T, ...] | None = None
    error: BaseException | None = None
    elapsed: float = 0.0

    def __post_init__(self) -> None:
        if self.final_state is ExecutionState.COMPLETED:
            if self.error is not None:
                raise ValidationError("A completed result cannot carry an error", field="error")
        elif self.final_state in FAILURE_STATES:
            if self.result is not None or self.results is not None:
                raise ValidationError(
                    f"A {self.final_state.value} result cannot carry a payload",
                    field="final_state",
                    value=self.final_state,
                )
        else:
            raise ValidationError(
                f"{self.final_state.value} is not a final state",
                field="final_state",
                value=self.final_state,
            )
        if self.elapsed < 0:
            raise ValidationError("Elapsed time cannot be negative", field="elapsed", value=self.elapsed)

    # ── Factories ────────────────────────────────────────────────────

    @classmethod
    def success(cls, result: T, elapsed: float) -> ExecutionResult[T]:
        """Single-task success."""
        return cls(ExecutionState.COMPLETED, result=result, elapsed=elapsed)

    @classmethod
    def success_many(cls, results: Iterable[T], elapsed: float) -> ExecutionResult[T]:
        """Batch success."""
        if results is None:
            raise ValidationError("results must not be None", field="results")
        return cls(ExecutionState.COMPLETED, results=tuple(results), elapsed=elapsed)

    @classmethod
    def failure(
        cls,
        error: BaseException,
        state: ExecutionState,
        elapsed: float,
    ) -> ExecutionResult[T]:
        """Failure with an attached exception.

        Raises:
            ValidationError: If *error* is None or *state* is not one of
                ERROR, CANCELLED, TIMEOUT, STOPPED.
        """
        if error is None:
            raise ValidationError("error must not be None", field="error")
        if state not in FAILURE_STATES:
            raise ValidationError(
                "State must be a failure state (ERROR, CANCELLED, TIMEOUT or STOPPED)",
                field="state",
                value=state,
            )
        return cls(state, error=error, elapsed=elapsed)

    @classmethod
    def cancelled(cls, elapsed: float, error: BaseException | None = None) -> ExecutionResult[T]:
        return cls(ExecutionState.CANCELLED, error=error, elapsed=elapsed)

    @classmethod
    def timeout(cls, elapsed: float, error: BaseException | None = None) -> ExecutionResult[T]:
        return cls(ExecutionState.TIMEOUT, error=error, elapsed=elapsed)

    @classmethod
    def stopped(cls, elapsed: float, error: BaseException | None = None) -> ExecutionResult[T]:
        return cls(ExecutionState.STOPPED, error=error, elapsed=elapsed)

    # ── Inspection ───────────────────────────────────────────────────

    @property
    def is_success(self) -> bool:
        return self.final_state is ExecutionState.COMPLETED

    @property
    def is_cancelled(self) -> bool:
        return self.final_state is ExecutionState.CANCELLED

    @property
    def is_timeout(self) -> bool:
        return self.final_state is ExecutionState.TIMEOUT

    @property
    def is_error(self) -> bool:
        return self.final_state is ExecutionState.ERROR

    @property
    def is_stopped(self) -> bool:
        return self.final_state is ExecutionState.STOPPED

    @property
    def is_batch(self) -> bool:
        return self.results is not None

    # ── Extraction ───────────────────────────────────────────────────

    def unwrap(self) -> Any:
        """Return the payload, or raise the error matching the final state.

        Returns:
            ``result`` for single-task runs, ``results`` for batch runs.

        Raises:
            WorkError: ERROR results (original exception as ``cause``).
            OperationCancelledError: CANCELLED and STOPPED results.
            TaskTimeoutError: TIMEOUT results.
        """
        if self.is_success:
            return self.results if self.results is not None else self.result
        if self.is_timeout:
            raise TaskTimeoutError(elapsed=self.elapsed, cause=self.error)
        if self.is_cancelled or self.is_stopped:
            raise OperationCancelledError(
                f"Run ended {self.final_state.value}", cause=self.error
            )
        raise WorkError(f"Work failed: {self.error!r}", cause=self.error)

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / CLI output."""
        payload: dict[str, Any] = {
            "final_state": self.final_state.value,
            "is_success": self.is_success,
            "elapsed": round(self.elapsed, 6),
        }
        if self.results is not None:
            payload["results"] = list(self.results)
            payload["count"] = len(self.results)
        elif self.is_success:
            payload["result"] = self.result
        if self.error is not None:
            payload["error"] = repr(self.error)
            payload["error_type"] = type(self.error).__name__
        return payload


__all__ = ["ExecutionResult", "FAILURE_STATES"]
