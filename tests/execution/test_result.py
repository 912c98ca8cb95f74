"""
Tests for ExecutionResult.

Tests cover:
- Factories and the state/payload invariants
- is_* shortcuts
- unwrap() error mapping
- to_dict() serialization
"""

import pytest

from taskrein.core.errors import (
    OperationCancelledError,
    TaskTimeoutError,
    ValidationError,
    WorkError,
)
from taskrein.execution.result import ExecutionResult
from taskrein.execution.states import ExecutionState


class TestFactories:
    def test_success(self):
        result = ExecutionResult.success(42, 0.1)
        assert result.final_state is ExecutionState.COMPLETED
        assert result.result == 42
        assert result.results is None
        assert result.error is None
        assert result.is_success
        assert not result.is_batch

    def test_success_many(self):
        result = ExecutionResult.success_many([1, 2, 3], 0.2)
        assert result.results == (1, 2, 3)
        assert result.is_batch
        assert result.is_success

    def test_success_many_empty(self):
        result = ExecutionResult.success_many((), 0.0)
        assert result.results == ()
        assert result.is_batch

    def test_success_many_rejects_none(self):
        with pytest.raises(ValidationError):
            ExecutionResult.success_many(None, 0.0)

    def test_failure(self):
        err = RuntimeError("boom")
        result = ExecutionResult.failure(err, ExecutionState.ERROR, 0.3)
        assert result.is_error
        assert result.error is err
        assert result.result is None

    @pytest.mark.parametrize(
        "state",
        [ExecutionState.ERROR, ExecutionState.CANCELLED, ExecutionState.TIMEOUT, ExecutionState.STOPPED],
    )
    def test_failure_accepts_failure_states(self, state):
        assert ExecutionResult.failure(RuntimeError(), state, 0.0).final_state is state

    @pytest.mark.parametrize(
        "state", [ExecutionState.COMPLETED, ExecutionState.RUNNING, ExecutionState.NOT_STARTED]
    )
    def test_failure_rejects_other_states(self, state):
        with pytest.raises(ValidationError):
            ExecutionResult.failure(RuntimeError(), state, 0.0)

    def test_failure_requires_error(self):
        with pytest.raises(ValidationError):
            ExecutionResult.failure(None, ExecutionState.ERROR, 0.0)

    def test_cancelled_timeout_stopped(self):
        assert ExecutionResult.cancelled(0.1).is_cancelled
        assert ExecutionResult.timeout(0.1).is_timeout
        assert ExecutionResult.stopped(0.1).is_stopped
        assert ExecutionResult.cancelled(0.1).error is None


class TestInvariants:
    def test_non_final_state_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionResult(ExecutionState.PAUSED)

    def test_completed_with_error_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionResult(ExecutionState.COMPLETED, result=1, error=RuntimeError())

    def test_failure_with_payload_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionResult(ExecutionState.TIMEOUT, result=1)

    def test_negative_elapsed_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionResult.success(1, -0.1)

    def test_frozen(self):
        result = ExecutionResult.success(1, 0.0)
        with pytest.raises(AttributeError):
            result.result = 2


class TestUnwrap:
    def test_success_returns_value(self):
        assert ExecutionResult.success("v", 0.0).unwrap() == "v"

    def test_batch_returns_tuple(self):
        assert ExecutionResult.success_many([1, 2], 0.0).unwrap() == (1, 2)

    def test_error_raises_work_error_with_cause(self):
        original = KeyError("k")
        with pytest.raises(WorkError) as exc_info:
            ExecutionResult.failure(original, ExecutionState.ERROR, 0.0).unwrap()
        assert exc_info.value.cause is original

    def test_timeout_raises_timeout_error(self):
        with pytest.raises(TaskTimeoutError) as exc_info:
            ExecutionResult.timeout(1.25).unwrap()
        assert exc_info.value.elapsed == 1.25

    @pytest.mark.parametrize("factory", [ExecutionResult.cancelled, ExecutionResult.stopped])
    def test_cancelled_and_stopped_raise_cancelled(self, factory):
        with pytest.raises(OperationCancelledError):
            factory(0.0).unwrap()


class TestToDict:
    def test_success_dict(self):
        data = ExecutionResult.success(7, 0.1234567).to_dict()
        assert data == {
            "final_state": "completed",
            "is_success": True,
            "elapsed": 0.123457,
            "result": 7,
        }

    def test_batch_dict(self):
        data = ExecutionResult.success_many([1, 4], 0.0).to_dict()
        assert data["results"] == [1, 4]
        assert data["count"] == 2

    def test_error_dict(self):
        data = ExecutionResult.failure(ValueError("bad"), ExecutionState.ERROR, 0.0).to_dict()
        assert data["final_state"] == "error"
        assert data["is_success"] is False
        assert data["error_type"] == "ValueError"
        assert "result" not in data
