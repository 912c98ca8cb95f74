"""
Tests for the structured error hierarchy.

Tests cover:
- Default categories per error type
- Stdlib compatibility (ValueError, TimeoutError)
- Context chaining and to_dict serialization
- categorize_error on foreign exceptions
"""

import pytest

from taskrein.core.errors import (
    ControllerDisposedError,
    ErrorCategory,
    OperationCancelledError,
    TaskReinError,
    TaskTimeoutError,
    ValidationError,
    WorkError,
    categorize_error,
)


class TestCategories:
    """Each error type carries its default category."""

    @pytest.mark.parametrize(
        "error, category",
        [
            (ValidationError("bad"), ErrorCategory.VALIDATION),
            (WorkError("boom"), ErrorCategory.WORK),
            (OperationCancelledError(), ErrorCategory.CANCELLED),
            (TaskTimeoutError(), ErrorCategory.TIMEOUT),
            (ControllerDisposedError(), ErrorCategory.INTERNAL),
        ],
    )
    def test_default_category(self, error, category):
        assert error.category is category

    def test_explicit_category_overrides_default(self):
        err = WorkError("boom", category=ErrorCategory.UNKNOWN)
        assert err.category is ErrorCategory.UNKNOWN


class TestStdlibCompatibility:
    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ValidationError("Delay time cannot be negative", field="delay", value=-1)

    def test_timeout_error_is_builtin_timeout(self):
        with pytest.raises(TimeoutError):
            raise TaskTimeoutError(elapsed=1.5)

    def test_all_are_taskrein_errors(self):
        for cls in (ValidationError, WorkError, TaskTimeoutError):
            assert issubclass(cls, TaskReinError)
        assert isinstance(OperationCancelledError(), TaskReinError)


class TestMessages:
    def test_cancelled_default_message(self):
        assert str(OperationCancelledError()) == "Operation was cancelled"

    def test_timeout_message_includes_elapsed(self):
        assert str(TaskTimeoutError(elapsed=0.25)) == "Task timed out after 0.250s"

    def test_timeout_message_without_elapsed(self):
        err = TaskTimeoutError()
        assert str(err) == "Task timed out"
        assert err.elapsed is None


class TestContextAndSerialization:
    def test_with_context_is_fluent(self):
        err = WorkError("Item failed").with_context(item_index=3)
        assert isinstance(err, WorkError)
        assert err.context == {"item_index": 3}

    def test_cause_is_chained(self):
        original = KeyError("missing")
        err = WorkError("wrapped", cause=original)
        assert err.cause is original
        assert err.__cause__ is original

    def test_to_dict(self):
        err = WorkError("boom", context={"run_id": "r1"}, cause=RuntimeError("x"))
        data = err.to_dict()
        assert data["error_type"] == "WorkError"
        assert data["message"] == "boom"
        assert data["category"] == "WORK"
        assert data["context"] == {"run_id": "r1"}
        assert data["cause"] == "RuntimeError('x')"

    def test_validation_to_dict_has_field_and_value(self):
        data = ValidationError("bad timeout", field="timeout", value=0).to_dict()
        assert data["field"] == "timeout"
        assert data["value"] == "0"

    def test_repr(self):
        assert repr(WorkError("boom")) == "WorkError('boom', category=WORK)"


class TestCategorizeError:
    def test_taskrein_error(self):
        assert categorize_error(OperationCancelledError()) is ErrorCategory.CANCELLED

    def test_builtin_timeout(self):
        assert categorize_error(TimeoutError()) is ErrorCategory.TIMEOUT

    def test_value_error(self):
        assert categorize_error(ValueError("x")) is ErrorCategory.VALIDATION

    def test_unknown(self):
        assert categorize_error(RuntimeError("x")) is ErrorCategory.UNKNOWN
